# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db

# Router imports
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.admin_orders import router as admin_orders_router
from routes.promotions import router as promotions_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Initialisation
init_db()

app = FastAPI(title="Storefront Orders API", version="1.0.0")

# CORS: local frontend dev servers plus the configured deployment URL
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(admin_orders_router)
app.include_router(promotions_router)

@app.get("/")
def read_root():
    return {"message": "Storefront Orders API is running"}

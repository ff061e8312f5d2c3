# salonbook/deps.py

from fastapi import HTTPException

from .booking import BookingManager
from .events import bus

# one manager per process so every request shares the same booking locks
booking_manager = BookingManager()

def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")

def get_booking_manager() -> BookingManager:
    return booking_manager

def get_event_bus():
    return bus

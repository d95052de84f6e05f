"""
Seed catalog used by the in-memory store and by `python -m storefront.data.seed`.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

FIXTURE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Wireless Headphones Pro",
        "description": "Premium noise-cancelling wireless headphones with exceptional sound quality and 30-hour battery life.",
        "price": 299.99,
        "original_price": 399.99,
        "rating": 4.8,
        "reviews_count": 234,
        "badge": "Best Seller",
        "category": "Electronics",
        "image_url": "/products/headphones.jpg",
        "stock": 15,
        "features": ["Noise Cancelling", "30hr Battery", "Bluetooth 5.0", "Premium Sound"],
        "tags": ["audio", "wireless", "headphones"],
        "sales_count": 412,
    },
    {
        "id": "2",
        "name": "Smart Watch Ultra",
        "description": "Advanced fitness tracking, heart rate monitoring, and smartphone integration in a sleek design.",
        "price": 449.99,
        "original_price": 599.99,
        "rating": 4.9,
        "reviews_count": 567,
        "badge": "New",
        "category": "Electronics",
        "image_url": "/products/smartwatch.jpg",
        "stock": 8,
        "features": ["Heart Rate Monitor", "GPS Tracking", "Water Resistant", "7-day Battery"],
        "tags": ["wearable", "fitness", "watch"],
        "sales_count": 298,
    },
    {
        "id": "3",
        "name": "Premium Backpack",
        "description": "Durable and stylish backpack with laptop compartment and multiple pockets for organization.",
        "price": 89.99,
        "original_price": 129.99,
        "rating": 4.7,
        "reviews_count": 123,
        "badge": "Sale",
        "category": "Fashion",
        "image_url": "/products/backpack.jpg",
        "stock": 25,
        "features": ["Laptop Compartment", "Water Resistant", "USB Charging", "Ergonomic Design"],
        "tags": ["bag", "travel"],
        "sales_count": 187,
    },
    {
        "id": "4",
        "name": "Wireless Speaker",
        "description": "Portable Bluetooth speaker with 360-degree sound and waterproof design.",
        "price": 159.99,
        "original_price": 199.99,
        "rating": 4.6,
        "reviews_count": 89,
        "badge": "Popular",
        "category": "Electronics",
        "image_url": "/products/speaker.jpg",
        "stock": 12,
        "features": ["360° Sound", "Waterproof", "12hr Battery", "Party Mode"],
        "tags": ["audio", "wireless", "speaker"],
        "sales_count": 156,
    },
    {
        "id": "5",
        "name": "Yoga Mat Premium",
        "description": "Extra thick, non-slip yoga mat with alignment markers for perfect practice.",
        "price": 49.99,
        "original_price": 69.99,
        "rating": 4.8,
        "reviews_count": 456,
        "badge": "Eco-Friendly",
        "category": "Sports",
        "image_url": "/products/yoga-mat.jpg",
        "stock": 30,
        "features": ["Non-Slip Surface", "6mm Thick", "Eco-Friendly", "Carrying Strap"],
        "tags": ["yoga", "fitness"],
        "sales_count": 340,
    },
    {
        "id": "6",
        "name": "Coffee Maker Deluxe",
        "description": "Programmable coffee maker with thermal carafe and customizable brew strength.",
        "price": 129.99,
        "original_price": 179.99,
        "rating": 4.5,
        "reviews_count": 178,
        "badge": "Top Rated",
        "category": "Home & Living",
        "image_url": "/products/coffee-maker.jpg",
        "stock": 18,
        "features": ["Programmable", "Thermal Carafe", "Auto Shut-off", "Multiple Brew Sizes"],
        "tags": ["kitchen", "coffee"],
        "sales_count": 143,
    },
    {
        "id": "7",
        "name": "Running Shoes Pro",
        "description": "Lightweight running shoes with advanced cushioning and breathable mesh upper.",
        "price": 119.99,
        "original_price": 159.99,
        "rating": 4.7,
        "reviews_count": 289,
        "badge": "Athletic",
        "category": "Sports",
        "image_url": "/products/running-shoes.jpg",
        "stock": 22,
        "features": ["Breathable Mesh", "Cushioned Sole", "Lightweight", "Reflective Details"],
        "tags": ["running", "shoes", "fitness"],
        "sales_count": 221,
    },
    {
        "id": "8",
        "name": "Desk Organizer Set",
        "description": "Complete desk organization solution with multiple compartments and modern design.",
        "price": 34.99,
        "original_price": 49.99,
        "rating": 4.4,
        "reviews_count": 92,
        "badge": "Office Essential",
        "category": "Home & Living",
        "image_url": "/products/desk-organizer.jpg",
        "stock": 40,
        "features": ["Multiple Compartments", "Modern Design", "Durable Material", "Easy Assembly"],
        "tags": ["office", "desk"],
        "sales_count": 98,
    },
]

# Fixture products share one creation timestamp; "newest" keeps catalog order for them.
FIXTURE_CREATED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def fixture_products() -> List[Dict[str, Any]]:
    """Return fresh copies of the fixture rows with created_at filled in."""
    rows = []
    for row in FIXTURE_PRODUCTS:
        copy = dict(row)
        copy["features"] = list(row["features"])
        copy["tags"] = list(row["tags"])
        copy.setdefault("created_at", FIXTURE_CREATED_AT)
        copy.setdefault("status", "active")
        rows.append(copy)
    return rows

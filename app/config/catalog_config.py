"""
Catalog and Order Workflow Configuration
This config defines the product category tree (sub-categories and pack weights),
the order status workflow, and the fixed cancellation reasons.
Used by product validation, the admin back office and the seed script.
"""

from typing import Dict, List, Optional

# Category tree: a category either has sub-categories (optionally with their own
# weights) or carries its weights directly.
PRODUCT_CATEGORIES = [
    {
        "value": "chawal",
        "label": "Chawal",
        "sub_categories": [
            {"value": "parmal_chawal", "label": "Parmal Chawal"},
            {"value": "kataranj_chawal", "label": "Kataranj Chawal"},
            {"value": "basmati_chawal", "label": "Basmati Chawal"},
            {"value": "sona_masoori", "label": "Sona Masoori"},
            {"value": "biryani_rice", "label": "Biryani Rice"},
        ],
    },
    {
        "value": "atta",
        "label": "Atta",
        "weights": [
            {"value": "5kg", "label": "5 KG"},
            {"value": "10kg", "label": "10 KG"},
            {"value": "15kg", "label": "15 KG"},
            {"value": "25kg", "label": "25 KG"},
        ],
    },
    {
        "value": "kapila",
        "label": "Kapila",
        "sub_categories": [
            {
                "value": "special_kapila",
                "label": "Special Kapila",
                "weights": [
                    {"value": "25kg", "label": "25 KG"},
                    {"value": "50kg", "label": "50 KG"},
                ],
            },
            {
                "value": "bypass_kapila",
                "label": "By-Pass Kapila",
                "weights": [
                    {"value": "25kg", "label": "25 KG"},
                    {"value": "50kg", "label": "50 KG"},
                ],
            },
        ],
    },
    {
        "value": "chokar",
        "label": "Chokar",
        "weights": [
            {"value": "35kg", "label": "35 KG"},
            {"value": "44kg", "label": "44 KG"},
            {"value": "48kg", "label": "48 KG"},
        ],
    },
]

# Order status workflow
ORDER_STATUSES = [
    {"value": "pending", "label": "Pending"},
    {"value": "confirmed", "label": "Confirmed"},
    {"value": "shipped", "label": "Shipped"},
    {"value": "delivered", "label": "Delivered"},
    {"value": "cancelled", "label": "Cancelled"},
]

ORDER_STATUS_TRANSITIONS: Dict[str, List[str]] = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["shipped", "cancelled"],
    "shipped": ["delivered"],
    "delivered": [],
    "cancelled": [],
}

# Statuses from which the customer may still cancel
CUSTOMER_CANCELLABLE_STATUSES = ["pending", "confirmed"]

CUSTOMER_CANCEL_REASONS = [
    "Changed my mind",
    "Found better price elsewhere",
    "Ordered by mistake",
    "Delivery time too long",
    "Financial reasons",
    "Other",
]

ADMIN_CANCEL_REASONS = [
    "Out of stock",
    "Payment issue",
    "Customer request",
    "Delivery not possible to location",
    "Order details incorrect",
    "Other",
]

DELIVERY_METHODS = ["standard", "express", "pickup"]


def get_category_by_value(value: str) -> Optional[dict]:
    return next((cat for cat in PRODUCT_CATEGORIES if cat["value"] == value), None)


def get_sub_category_by_value(category: str, sub_category: str) -> Optional[dict]:
    cat = get_category_by_value(category)
    if not cat:
        return None
    return next((sub for sub in cat.get("sub_categories", []) if sub["value"] == sub_category), None)


def get_weight_options(category: str, sub_category: Optional[str] = None) -> List[dict]:
    """Weights of the sub-category when it defines any, else the category's own weights."""
    cat = get_category_by_value(category)
    if not cat:
        return []
    if sub_category and cat.get("sub_categories"):
        sub = get_sub_category_by_value(category, sub_category)
        if sub and sub.get("weights"):
            return sub["weights"]
    return cat.get("weights", [])


def generate_product_name(category: str, sub_category: Optional[str] = None, weight: Optional[str] = None) -> str:
    """Build a display name such as "Special Kapila - 25 KG" from the category tree."""
    cat = get_category_by_value(category)
    if not cat:
        return ""

    name = cat["label"]
    if sub_category:
        sub = get_sub_category_by_value(category, sub_category)
        if sub:
            name = sub["label"]

    if weight:
        weight_label = weight.upper().replace("KG", " KG", 1)
        name = f"{name} - {weight_label}"

    return name


def get_status_label(status: Optional[str]) -> str:
    for entry in ORDER_STATUSES:
        if entry["value"] == status:
            return entry["label"]
    return ORDER_STATUSES[0]["label"]


def get_catalog_config():
    """
    Returns the static configuration consumed by storefront clients
    Format: {
        "categories": [...PRODUCT_CATEGORIES],
        "order_statuses": [...],
        "delivery_methods": [...],
        "customer_cancel_reasons": [...],
        "admin_cancel_reasons": [...]
    }
    """
    return {
        "categories": PRODUCT_CATEGORIES,
        "order_statuses": ORDER_STATUSES,
        "delivery_methods": DELIVERY_METHODS,
        "customer_cancel_reasons": CUSTOMER_CANCEL_REASONS,
        "admin_cancel_reasons": ADMIN_CANCEL_REASONS,
    }

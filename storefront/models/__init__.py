from storefront.models.user import User
from storefront.models.product import Category, Product
from storefront.models.cart import Cart, CartItem
from storefront.models.address import Address
from storefront.models.order import Order, OrderItem, OrderStatus, ORDER_TRANSITIONS, TERMINAL_STATUSES
from storefront.models.loyalty import LoyaltyAccount, LoyaltyTransaction, LoyaltyTier, TransactionType
from storefront.models.wishlist import WishlistItem
from storefront.models.vendor import Vendor, VendorStatus
from storefront.models.review import Review

__all__ = [
    "User",
    "Category",
    "Product",
    "Cart",
    "CartItem",
    "Address",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ORDER_TRANSITIONS",
    "TERMINAL_STATUSES",
    "LoyaltyAccount",
    "LoyaltyTransaction",
    "LoyaltyTier",
    "TransactionType",
    "WishlistItem",
    "Vendor",
    "VendorStatus",
    "Review",
]

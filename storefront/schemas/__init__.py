from storefront.schemas.user import UserCreate, UserResponse, UserLogin, Token, ProfileUpdate
from storefront.schemas.product import ProductCreate, ProductUpdate, ProductResponse, ProductList
from storefront.schemas.cart import CartItemCreate, CartItemUpdate, CartItemResponse, CartResponse
from storefront.schemas.address import AddressCreate, AddressUpdate, AddressResponse
from storefront.schemas.order import OrderResponse, OrderList, OrderStatusUpdate
from storefront.schemas.checkout import CheckoutRequest, CheckoutSessionResponse
from storefront.schemas.loyalty import LoyaltyAccountResponse, RedeemRequest
from storefront.schemas.vendor import VendorApply, VendorResponse, VendorStats
from storefront.schemas.review import ReviewCreate, ReviewResponse, ProductReviews

from storefront.models.user import User
from storefront.models.book import Book
from storefront.models.order import Order
from storefront.models.user_book import UserBook

# add ALL models here

from .user import User, UserType
from .producer import Producer
from .product import Product, Experience, ExperiencePage
from .interaction import Interaction, InteractionAction, InteractionCreate, InteractionSummary
from .response import BasicResponse, SuccessResponse

__all__ = [
    "User", "UserType",
    "Producer",
    "Product", "Experience", "ExperiencePage",
    "Interaction", "InteractionAction", "InteractionCreate", "InteractionSummary",
    "BasicResponse", "SuccessResponse",
]

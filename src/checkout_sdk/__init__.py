# checkout_sdk package
__version__ = "0.1.0"

from .catalog import Catalog, Product, default_catalog
from .cart import Cart, CartItem
from .checkout import CheckoutLineItem, build_line_items
from .config import Settings
from .errors import (
    CheckoutError,
    ValidationError,
    EmptyCartError,
    UnknownProductError,
    InvalidQuantityError,
    InvalidAmountError,
    GatewayError,
    LoggingError,
)
from .services import CheckoutService

# Callback recording
from .callback_log import (
    CallbackRecorder,
    JsonLinesRecorder,
    MemoryRecorder,
    file_recorders,
)
from .callbacks import CallbackHandler

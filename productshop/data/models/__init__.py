#import every model so SQLAlchemy registers it in Base.metadata

from productshop.data.models.member import MemberModel
from productshop.data.models.product import ProductModel
from productshop.data.models.product_option import ProductOptionModel
from productshop.data.models.order import OrderModel
from productshop.data.models.order_line import OrderLineModel, NO_OPTION

__all__ = [
    "MemberModel",
    "ProductModel",
    "ProductOptionModel",
    "OrderModel",
    "OrderLineModel",
    "NO_OPTION",
]

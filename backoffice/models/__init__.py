from backoffice.models.user import AdminUser, User
from backoffice.models.product import Category, Product, ProductVariant
from backoffice.models.inventory import InventoryRecord, StockMovement
from backoffice.models.shipping import ShippingCarrier, ShippingMethod, ShippingServiceType
from backoffice.models.order import Order, OrderItem
from backoffice.models.variation import VariationAttribute, VariationAttributeValue

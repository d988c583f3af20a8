from .users import User  # noqa: F401
from .shipment import Shipment  # noqa: F401
from .warehouse_capacity import WarehouseCapacity, WarehouseCapacityHistory  # noqa: F401

from boba_pos.models.menu_item import MenuItem
from boba_pos.models.topping import Topping
from boba_pos.models.order import Order
from boba_pos.models.order_item import OrderItem
from boba_pos.models.inventory import InventoryItem, InventoryUsage
from boba_pos.models.manager import Manager

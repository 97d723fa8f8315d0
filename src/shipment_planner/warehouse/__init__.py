from shipment_planner.warehouse.entities import Customer, InputData, OrderLine, Product, Warehouse
from shipment_planner.warehouse.geometry import Position
from shipment_planner.warehouse.instance import generate_instance, load_instance, parse_instance
from shipment_planner.warehouse.inventory import InventoryLedger

__all__ = [
    "Customer",
    "InputData",
    "OrderLine",
    "Product",
    "Warehouse",
    "Position",
    "generate_instance",
    "load_instance",
    "parse_instance",
    "InventoryLedger",
]

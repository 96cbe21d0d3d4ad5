"""Device catalog.

Reference wattages used to pre-populate the calculator. The catalog is a
fixed table; the calculation itself only ever sees the device entries the
user ends up with.
"""

DEVICE_CATEGORIES = ["lighting", "electronics", "appliances", "industrial"]

DEVICE_CATALOG = {
    "LED Light Bulb": {
        "category": "lighting",
        "power_consumption": 10,
        "icon": "💡",
        "description": "Energy efficient LED bulb"
    },
    "Phone Charger": {
        "category": "electronics",
        "power_consumption": 5,
        "icon": "📱",
        "description": "Mobile phone charger"
    },
    "Radio": {
        "category": "electronics",
        "power_consumption": 15,
        "icon": "📻",
        "description": "AM/FM radio receiver"
    },
    "TV": {
        "category": "electronics",
        "power_consumption": 100,
        "icon": "📺",
        "description": "LCD/LED television"
    },
    "Laptop": {
        "category": "electronics",
        "power_consumption": 65,
        "icon": "💻",
        "description": "Laptop computer"
    },
    "Refrigerator": {
        "category": "appliances",
        "power_consumption": 150,
        "icon": "🧊",
        "description": "Energy efficient refrigerator"
    },
    "Fan": {
        "category": "appliances",
        "power_consumption": 75,
        "icon": "🌀",
        "description": "Ceiling or table fan"
    },
    "Water Pump": {
        "category": "industrial",
        "power_consumption": 500,
        "icon": "💧",
        "description": "Water pumping system"
    },
    "Washing Machine": {
        "category": "appliances",
        "power_consumption": 400,
        "icon": "👕",
        "description": "Automatic washing machine"
    },
    "Air Conditioner": {
        "category": "appliances",
        "power_consumption": 1200,
        "icon": "❄️",
        "description": "Split AC unit"
    },
    "Microwave": {
        "category": "appliances",
        "power_consumption": 800,
        "icon": "📦",
        "description": "Microwave oven"
    },
    "Electric Iron": {
        "category": "appliances",
        "power_consumption": 1000,
        "icon": "👔",
        "description": "Electric clothes iron"
    },
}

# Wizard defaults for a freshly added device
DEFAULT_QUANTITY = 1
DEFAULT_HOURS_PER_DAY = 4


def get_device_catalog():
    """Return the catalog as a list of entries, in display order."""
    return [{"name": name, **info} for name, info in DEVICE_CATALOG.items()]


def get_devices_by_category(category):
    """Catalog entries for one category; "all" returns the whole catalog."""
    if category == "all":
        return get_device_catalog()
    return [d for d in get_device_catalog() if d["category"] == category]


def make_device_entry(name, quantity=DEFAULT_QUANTITY, hours_per_day=DEFAULT_HOURS_PER_DAY):
    """Build a calculation device entry from a catalog device."""
    info = DEVICE_CATALOG[name]
    return {
        "type": name,
        "quantity": quantity,
        "hours_per_day": hours_per_day,
        "power_consumption": info["power_consumption"],
    }

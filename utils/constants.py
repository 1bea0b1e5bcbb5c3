APP_NAME = "Monthly Money Tracker"
APP_WIDTH = 1200
APP_HEIGHT = 750
DB_FILE = "money_tracker.db"

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
SNAPSHOT_KEY = "ledger"
SNAPSHOT_VERSION = 1
MIN_PASSWORD_LENGTH = 8
PBKDF2_ITERATIONS = 240_000

DEFAULT_INCOME = {"name": "Holiday Inn", "amount": 1500.0}

DEFAULT_CATEGORIES = [
    {"name": "Rent",          "planned": 450.0},
    {"name": "Utilities",     "planned": 50.0},
    {"name": "Wifi",          "planned": 20.0},
    {"name": "Insurance",     "planned": 307.0},
    {"name": "Gas",           "planned": 100.0},
    {"name": "Food",          "planned": 100.0},
    {"name": "Subscriptions", "planned": 65.0},
    {"name": "Affirm 1",      "planned": 60.0},
    {"name": "Affirm 2",      "planned": 34.0},
    {"name": "Mobile bill",   "planned": 140.0},
    {"name": "Send to India", "planned": 150.0},
]

CHART_COLORS = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF",
    "#FF9F40", "#E7E9ED", "#7BC043", "#EE4035", "#0392CF",
    "#F37736",
]

PLANNED_COLOR = "#667EEA"
ACTUAL_COLOR = "#FF6384"
UNDER_COLOR = "#4CAF50"
OVER_COLOR = "#F44336"

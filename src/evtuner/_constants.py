"""Internal constants shared across the library."""

#: Prefix used for every persisted key.  Matches the keys written by the
#: original web application so its local-storage dumps can be reused.
DEFAULT_KEY_PREFIX = "ev-tuner-"

SETTINGS_KEY = "settings"
RECORDS_KEY = "records"
CHARGE_RECORDS_KEY = "charge-records"
LAST_INPUT_KEY = "last-input"
TEMPLATES_KEY = "templates"
LAST_BACKUP_COUNT_KEY = "last-backup-count"

#: Preset road-condition tags, always listed before the user's custom tags.
DEFAULT_TAGS: tuple[str, ...] = (
    "单人通勤",
    "双人重载",
    "极速满把",
    "佛系省电",
    "爬坡测试",
)

# ------------------------------------------------------------------
# Settings defaults
# ------------------------------------------------------------------

DEFAULT_VOLTAGE = 64.0
DEFAULT_CAPACITY = 45.0
DEFAULT_EXCELLENT_THRESHOLD = 25.0
DEFAULT_WARNING_THRESHOLD = 32.0
DEFAULT_ELECTRICITY_PRICE = 0.6

DEFAULT_BUSBAR_CURRENT = 45.0
DEFAULT_PHASE_CURRENT = 120.0

#: Number of rides added since the last backup that triggers a reminder.
BACKUP_REMINDER_THRESHOLD = 20

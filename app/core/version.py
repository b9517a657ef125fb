APP_NAME = "Aura Assessment API"
APP_VERSION = "1.0.0"

import os
from dotenv import load_dotenv

load_dotenv()

# Database Config
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "secret")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "vital_monitor")

DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

# Ingestion / transport
INGESTION_URL = os.getenv("INGESTION_URL", "http://localhost:8001/api/v1/records")
SOCKET_URL = os.getenv("SOCKET_URL", "http://localhost:8001")
RECONNECT_DELAY_SECONDS = float(os.getenv("RECONNECT_DELAY_SECONDS", "5.0"))
# 0 = retry forever
MAX_RECONNECT_ATTEMPTS = int(os.getenv("MAX_RECONNECT_ATTEMPTS", "0"))

# Simulator
PATIENT_COUNT = int(os.getenv("PATIENT_COUNT", "3"))
FREQUENCY_HZ = float(os.getenv("FREQUENCY_HZ", "1.0"))
SIMULATOR_SEED = int(os.getenv("SIMULATOR_SEED", "42"))
SIMULATOR_OUTPUT = os.getenv("SIMULATOR_OUTPUT", "console")
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")

# Processor
PROCESSOR_SOURCE = os.getenv("PROCESSOR_SOURCE", "websocket")
DATA_DIR = os.getenv("DATA_DIR", "output")
EVALUATION_INTERVAL_SECONDS = float(os.getenv("EVALUATION_INTERVAL_SECONDS", "10.0"))
ALERT_COOLDOWN_SECONDS = float(os.getenv("ALERT_COOLDOWN_SECONDS", "300.0"))
ALERT_SINK = os.getenv("ALERT_SINK", "console")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Rooms are fixed at startup; extend the list to add more
ROOMS = [room.strip() for room in os.getenv("ROOMS", "Main_Screen,House_Screen").split(",") if room.strip()]

MAX_PLAYERS_PER_ROOM = int(os.getenv("MAX_PLAYERS_PER_ROOM", 10))
ENFORCE_ROOM_CAPACITY = os.getenv("ENFORCE_ROOM_CAPACITY", "false").lower() in ("1", "true", "yes")

# Fraction of player_move events that get logged
MOVE_LOG_SAMPLE_RATE = float(os.getenv("MOVE_LOG_SAMPLE_RATE", 0.1))

DEFAULT_POSITION = (192, 160)

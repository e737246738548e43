"""
Application Constants

Defines constants used throughout the NetHub client.
"""

# Chat stream settings
DEFAULT_CHAT_HOST = "localhost"
DEFAULT_CHAT_PORT = 5000
DEFAULT_CONNECT_TIMEOUT = 5.0
LINE_DELIMITER = "\n"
DEFAULT_ENCODING = "utf-8"

# Probe datagram settings
DEFAULT_PROBE_HOST = "localhost"
DEFAULT_PROBE_PORT = 5002
DEFAULT_PROBE_TIMEOUT = 5.0
PROBE_BUFFER_SIZE = 1024

# Link validation settings
DEFAULT_LINK_TIMEOUT = 5.0
LINK_CHECKER_USER_AGENT = "NetHub-LinkChecker/1.0"
TRANSPORT_FAILURE_STATUS = -1
VALID_STATUS_MIN = 200
VALID_STATUS_MAX = 400  # exclusive

HTTP_STATUS_PHRASES = {
    200: "OK",
    201: "Created",
    204: "No Content",
    301: "Moved Permanently",
    302: "Found (Redirect)",
    304: "Not Modified",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

# Status notices
STATUS_CONNECTED = "Connected to TCP Chat Server"
STATUS_DISCONNECTED = "Disconnected"
STATUS_CONNECTION_LOST = "Connection lost: {}"
STATUS_DISCONNECT_ERROR = "Error disconnecting: {}"
STATUS_SEND_FAILED = "Send failed: {}"

# Front end
DEFAULT_WORKER_THREADS = 4
DEFAULT_PUMP_INTERVAL = 0.05

# Command constants
QUIT_COMMAND = "/quit"
HELP_COMMAND = "/help"
CONNECT_COMMAND = "/connect"
DISCONNECT_COMMAND = "/disconnect"
PROBE_COMMAND = "/probe"
CHECK_COMMAND = "/check"

# Log format constants
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

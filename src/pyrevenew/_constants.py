"""Internal constants shared across the library."""

USER_AGENT = "pyrevenew"
SCHEME = "http"

LOG_PURCHASE_PATH = "/api/v1/log-purchase"
LOG_DOWNLOAD_PATH = "/api/v1/log-download"

#: Outbound requests get one generous attempt and are never retried.
DEFAULT_REQUEST_TIMEOUT: float = 120.0

# ------------------------------------------------------------------
# Persistent storage keys
# ------------------------------------------------------------------

USER_ID_KEY = "com.revenew.userId"
LAST_LOGGED_TRANSACTION_KEY = "com.revenew.lastLoggedTransaction"

# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------

#: A transaction whose purchase date lies within this many seconds of the
#: original purchase date is treated as the first one of its subscription
#: group (and therefore the trial start when a free trial is offered).
TRIAL_START_WINDOW_SECONDS: float = 60.0

#: Reported when the store does not expose a storefront country code.
UNKNOWN_STOREFRONT = "-"

# ------------------------------------------------------------------
# Purchase flow messages surfaced on ``PurchaseState.error``
# ------------------------------------------------------------------

PURCHASE_FAILED_MESSAGE = "Failed to purchase the product."
PURCHASE_EXCEPTION_MESSAGE = "Something went wrong, {error}"

from prometheus_client import Counter

TOKEN_STORE_OPERATIONS = Counter(
    "oauth2_token_store_operations_total",
    "Token store operations by outcome",
    ["operation", "outcome"],
)
TOKEN_STORE_CLEANUP_DELETED = Counter(
    "oauth2_token_store_cleanup_deleted_total",
    "Token rows removed by cleanup",
)

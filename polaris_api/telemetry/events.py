"""
Telemetry Event Names

Naming convention: {entity}_{action}.
"""


class TelemetryEvents:
    """Centralized telemetry event names."""

    # Request lifecycle
    REQUEST_RECEIVED = "request_received"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"

    # Authentication
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    USER_CREATED = "user_created"
    LOGIN_CONFLICT_RETRIED = "login_conflict_retried"
    TOKEN_REFRESHED = "token_refreshed"
    TOKEN_REJECTED = "token_rejected"
    PROFILE_UPDATED = "profile_updated"
    ADMIN_KEY_REJECTED = "admin_key_rejected"

    # Uploads
    UPLOAD_COMPLETED = "upload_completed"
    UPLOAD_REJECTED = "upload_rejected"

    # App versions
    APP_VERSION_CREATED = "app_version_created"
    APP_VERSION_ACTIVATED = "app_version_activated"

    # WeChat platform
    WECHAT_CALL_FAILED = "wechat_call_failed"
    QRCODE_GENERATED = "qrcode_generated"
    SUBSCRIBE_MESSAGE_SENT = "subscribe_message_sent"

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

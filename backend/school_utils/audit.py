import logging
import os
from datetime import datetime, timezone
from flask import current_app, has_app_context

DEFAULT_AUDIT_LOG_FILE = os.path.join("logs", "audit.log")

def log_event(event_type, user_id=None, ip=None, description=None, level="INFO"):
    """
    Logs a security or audit-related event to a file.

    Parameters:
        event_type (str): The type of the event (e.g., LOGIN_SUCCESS).
        user_id (int|None): The user ID, if available.
        ip (str|None): IP address, if available.
        description (str|None): Additional context.
        level (str): Log level (e.g., INFO, WARNING, ERROR).
    """
    audit_file = DEFAULT_AUDIT_LOG_FILE
    if has_app_context():
        audit_file = current_app.config.get("AUDIT_LOG_FILE") or DEFAULT_AUDIT_LOG_FILE

    directory = os.path.dirname(audit_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')
    log_entry = (
        f"[{timestamp}] [{level.upper()}] EVENT: {event_type} | "
        f"USER: {user_id or 'N/A'} | IP: {ip or 'N/A'} | DESC: {description or 'N/A'}\n"
    )

    with open(audit_file, "a", encoding="utf-8") as log_file:
        log_file.write(log_entry)

    if has_app_context():
        current_app.logger.log(
            getattr(logging, level.upper(), logging.INFO),
            "%s user=%s ip=%s %s", event_type, user_id or "N/A", ip or "N/A", description or ""
        )


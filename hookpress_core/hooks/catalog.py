"""Hook names the host fires, bound to their payload and value types.

Names follow the ``owner/event-name`` convention; components should namespace
their own hooks the same way to avoid collisions.
"""

from __future__ import annotations

from .keys import action_key, filter_key

# ---------- Content ----------
CONTENT_SAVED = action_key("core/content-saved", dict)
CONTENT_PUBLISHED = action_key("core/content-published", int)
CONTENT_DELETED = action_key("core/content-deleted", int)
THE_TITLE = filter_key("core/the-title", str)
THE_CONTENT = filter_key("core/the-content", str)

# ---------- Requests and users ----------
PAGE_VIEW = action_key("core/page-view", str)
USER_LOGIN = action_key("core/user-login", int)
PAGE_FOOTER = filter_key("core/page-footer", str)

# ---------- Host ----------
APP_READY = action_key("hookpress/ready", dict)
APP_SHUTDOWN = action_key("hookpress/shutdown", dict)

# ---------- Component lifecycle ----------
COMPONENT_ACTIVATED = action_key("hookpress/component-activated", str)
COMPONENT_DEACTIVATED = action_key("hookpress/component-deactivated", str)
COMPONENT_UNINSTALLED = action_key("hookpress/component-uninstalled", str)

STANDARD_HOOKS = (
    APP_READY,
    APP_SHUTDOWN,
    CONTENT_SAVED,
    CONTENT_PUBLISHED,
    CONTENT_DELETED,
    THE_TITLE,
    THE_CONTENT,
    PAGE_VIEW,
    USER_LOGIN,
    PAGE_FOOTER,
    COMPONENT_ACTIVATED,
    COMPONENT_DEACTIVATED,
    COMPONENT_UNINSTALLED,
)

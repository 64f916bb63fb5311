"""Well-known event type constants.

Defined centrally so publishers and subscribers reference the same strings.
"""

# --- Engine state (engines → views) -------------------------------------

TIMER_STATE_CHANGED = "timer.state.changed"
TIMER_COMPLETED = "timer.completed"
SLIDESHOW_STATE_CHANGED = "slideshow.state.changed"
SLIDESHOW_IMAGE_CHANGED = "slideshow.image.changed"

# --- Collaborators -------------------------------------------------------

SETTINGS_CHANGED = "settings.changed"
IMAGES_REFRESHED = "images.refreshed"
WEATHER_UPDATED = "weather.updated"
PHOTO_UPLOADED = "photos.uploaded"
PHOTO_DELETED = "photos.deleted"

# --- System lifecycle ----------------------------------------------------

SYSTEM_STARTED = "system.started"
SHUTDOWN_INITIATED = "system.shutdown.initiated"

from __future__ import annotations

# Index key shared by every moderator token and roster entry; the moderator has no identity-id.
MODERATOR_KEY = "moderator"

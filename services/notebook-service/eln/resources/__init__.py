"""Records attached to an entity."""

from .comments import Comments
from .links import Links
from .revisions import Revisions
from .steps import Steps
from .tags import Tags
from .uploads import Uploads

__all__ = ["Comments", "Links", "Revisions", "Steps", "Tags", "Uploads"]

from imagehost.models.image import Image
from imagehost.models.user import User

__all__ = ["Image", "User"]

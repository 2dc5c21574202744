from .config import Settings
from .edit_client import ImageEditClient
from .models import DisplayableImage, EncodedImage, ImageResource
from .session import AppStatus, EditSession

import cloudinary
import cloudinary.uploader

from config.env import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
)
from config.constants import PRODUCT_IMAGE_FOLDER

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def upload_product_image(file, seller_id) -> str | None:
    result = cloudinary.uploader.upload(
        file,
        folder=f"{PRODUCT_IMAGE_FOLDER}/{seller_id}",
        resource_type="image",
    )
    return result.get("secure_url")

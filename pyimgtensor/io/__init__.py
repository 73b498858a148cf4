from .codec import decode_image, from_cv2_array, from_pil, to_pil, write_image

__all__ = ["decode_image", "from_cv2_array", "from_pil", "to_pil", "write_image"]

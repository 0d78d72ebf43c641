from .pillow_transform import PillowImageTransformer

__all__ = ["PillowImageTransformer"]

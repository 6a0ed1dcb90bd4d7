from swatch_proxy.routers import swatches

__all__ = [
    "swatches",
]

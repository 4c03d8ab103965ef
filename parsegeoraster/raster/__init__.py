from parsegeoraster.raster.georaster import GeoRaster  # noqa isort:skip

__all__ = ["GeoRaster"]

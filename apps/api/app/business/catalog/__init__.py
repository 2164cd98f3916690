from app.business.catalog.api import router
from app.business.catalog.models import (
    CatalogProduct,
    CatalogProductAsset,
    CatalogProductCounter,
    CatalogProductMaterial,
    CatalogVatRate,
)
from app.business.catalog.service import CatalogService, catalog_service

__all__ = [
    "router",
    "CatalogProduct",
    "CatalogProductAsset",
    "CatalogProductCounter",
    "CatalogProductMaterial",
    "CatalogVatRate",
    "CatalogService",
    "catalog_service",
]

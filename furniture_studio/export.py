from __future__ import annotations

"""Save-to-folder export of gallery assets."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .models import Asset, AssetType

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
}

_SUBFOLDERS = {
    AssetType.RENDER: "renders",
    AssetType.REFERENCE: "references",
    AssetType.VIDEO: "videos",
}


def asset_metadata_dict(asset: Asset) -> Dict[str, Any]:
    """Plain dict view of an asset, without its bytes."""
    meta = asset.metadata
    dimensions = None
    if meta.dimensions is not None:
        dimensions = {
            "width": meta.dimensions.width,
            "height": meta.dimensions.height,
            "depth": meta.dimensions.depth,
        }
    return {
        "id": asset.id,
        "type": asset.type.value,
        "mime_type": asset.mime_type,
        "timestamp": asset.timestamp,
        "metadata": {
            "prompt": meta.prompt,
            "dimensions": dimensions,
            "brand_style": meta.brand_style,
            "lighting": meta.lighting,
            "view_name": meta.view_name,
        },
    }


def save_asset(
        asset: Asset,
        root: Union[str, Path],
        sub_folder: Optional[str] = None,
) -> Path:
    """
    Write the asset bytes plus a YAML sidecar under ``root``.

    Files land in ``<root>/<sub_folder>/<type>_<id><ext>`` where the sub
    folder defaults to one per asset type (renders, references, videos).
    Returns the path of the written asset file.
    """
    out_dir = Path(root) / (sub_folder or _SUBFOLDERS[asset.type])
    out_dir.mkdir(parents=True, exist_ok=True)

    ext = _EXTENSIONS.get(asset.mime_type, ".bin")
    out_path = out_dir / f"{asset.type.value}_{asset.id}{ext}"
    out_path.write_bytes(asset.data)

    sidecar = out_path.with_suffix(".yaml")
    with sidecar.open("w", encoding="utf-8") as f:
        yaml.safe_dump(asset_metadata_dict(asset), f, sort_keys=False, allow_unicode=True)

    logging.info("Saved %s %s to %s", asset.type.value, asset.id, out_path)
    return out_path

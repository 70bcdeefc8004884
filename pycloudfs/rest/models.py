"""Pydantic models for CloudFS API entities."""

from __future__ import annotations

import weakref
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from pydantic import BaseModel, Field, PrivateAttr

from .exceptions import CloudFSError

if TYPE_CHECKING:
    from .adapter import RESTAdapter
    from .transport import ProgressCallback


# =============================================================================
# Wire enums
# =============================================================================


class Exists(str, Enum):
    """What the server should do when a create/copy/move target already exists."""

    FAIL = "fail"
    OVERWRITE = "overwrite"
    RENAME = "rename"


class VersionConflict(str, Enum):
    """What the server should do when a meta update hits a version mismatch."""

    FAIL = "fail"
    OVERWRITE = "overwrite"
    IGNORE = "ignore"


class RestoreMethod(str, Enum):
    """How a trashed item is restored."""

    FAIL = "fail"
    RECREATE = "recreate"
    RESCUE = "rescue"


class ItemKind(str, Enum):
    """Classification of a remote item."""

    FOLDER = "folder"
    FILE = "file"
    DOCUMENT = "document"
    PHOTO = "photo"
    VIDEO = "video"


_CATEGORY_KINDS = {
    "documents": ItemKind.DOCUMENT,
    "photos": ItemKind.PHOTO,
    "videos": ItemKind.VIDEO,
}


def join_path(parent: str | None, child: str) -> str:
    """Join a remote parent path and a child segment."""
    parent = (parent or "").rstrip("/")
    return f"{parent}/{child}"


class _AdapterBound(BaseModel):
    """Base for entities that call back into the adapter that produced them.

    Only a weak reference is kept, so an item never keeps its adapter alive.
    """

    _adapter_ref: Any = PrivateAttr(default=None)

    def bind(self, adapter: RESTAdapter | None) -> None:
        self._adapter_ref = weakref.ref(adapter) if adapter is not None else None

    @property
    def adapter(self) -> RESTAdapter:
        adapter = self._adapter_ref() if self._adapter_ref is not None else None
        if adapter is None:
            raise CloudFSError(
                f"{type(self).__name__} is not bound to a live RESTAdapter"
            )
        return adapter


# =============================================================================
# Filesystem items
# =============================================================================


class Item(_AdapterBound):
    """A file or folder in the cloud filesystem.

    Keys the model does not know about are kept and exposed through
    `extension_metadata`.
    """

    name: str = Field(default="", description="Display name")
    item_id: str = Field(default="", alias="id", description="Path segment id")
    item_type: str = Field(default="file", alias="type", description="folder or file")
    category: str = Field(default="", description="Server-side content category")
    mime: str = Field(default="", description="MIME type (files only)")
    extension: str = Field(default="", description="File extension")
    size: int | None = Field(default=None, description="Size in bytes")
    version: int | None = Field(default=None, description="Meta version")
    parent_id: str | None = Field(default=None, description="Id of the parent folder")
    date_created: float | None = None
    date_meta_last_modified: float | None = None
    date_content_last_modified: float | None = None
    is_mirrored: bool = False
    application_data: dict[str, Any] = Field(default_factory=dict)
    path: str = Field(default="", description="Absolute remote path")
    parent_path: str | None = Field(default=None, description="Remote parent path")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @classmethod
    def from_response(
        cls,
        data: dict[str, Any],
        parent_path: str | None = None,
        adapter: RESTAdapter | None = None,
        path: str | None = None,
    ) -> Item:
        """Build an item from a meta record returned by the API.

        Args:
            data: The meta record.
            parent_path: Remote path of the folder the item lives in.
            adapter: Adapter to use for follow-up calls on the item.
            path: Remote path of the item itself, when the caller knows it.

        Returns:
            The item.
        """
        item = cls.model_validate(data)
        if path is not None:
            item.path = path
        if parent_path is not None:
            item.parent_path = parent_path
        if not item.path:
            item.path = join_path(item.parent_path, item.item_id or item.name)
        if item.parent_path is None:
            item.parent_path = item.path.rsplit("/", 1)[0] or "/"
        item.bind(adapter)
        return item

    @property
    def kind(self) -> ItemKind:
        if self.item_type == "folder":
            return ItemKind.FOLDER
        kind = _CATEGORY_KINDS.get(self.category)
        if kind is not None:
            return kind
        if self.mime.startswith("image/"):
            return ItemKind.PHOTO
        if self.mime.startswith("video/"):
            return ItemKind.VIDEO
        return ItemKind.FILE

    @property
    def is_folder(self) -> bool:
        """Check if this item is a folder."""
        return self.kind == ItemKind.FOLDER

    @property
    def extension_metadata(self) -> dict[str, Any]:
        """Response keys without a dedicated field."""
        return dict(self.model_extra or {})

    def _require_folder(self, operation: str) -> None:
        if not self.is_folder:
            raise CloudFSError(
                f"{operation} is only supported on folders: {self.path}"
            )

    def _require_file(self, operation: str) -> None:
        if self.is_folder:
            raise CloudFSError(f"{operation} is only supported on files: {self.path}")

    # Folder operations

    def children(
        self, version: int = 0, depth: int = 0, filter: str | None = None
    ) -> list[Item]:
        """List the children of this folder."""
        self._require_folder("children")
        return self.adapter.get_list(
            self.path, version=version, depth=depth, filter=filter
        )

    def create_folder(self, name: str, exists: Exists | str = Exists.FAIL) -> Item:
        self._require_folder("create_folder")
        return self.adapter.create_folder(self.path, name, exists=exists)

    def upload(
        self,
        source: str | Path,
        name: str | None = None,
        exists: Exists | str = Exists.OVERWRITE,
        progress_callback: ProgressCallback | None = None,
    ) -> Item:
        """Upload a local file into this folder."""
        self._require_folder("upload")
        if name is None:
            name = Path(source).name
        return self.adapter.upload_file(
            self.path,
            name,
            source,
            exists=exists,
            progress_callback=progress_callback,
        )

    # File operations

    def download(
        self,
        sink: str | Path | IO[bytes],
        progress_callback: ProgressCallback | None = None,
    ) -> int:
        self._require_file("download")
        return self.adapter.download_file(self.path, sink, progress_callback)

    def read(self) -> bytes:
        self._require_file("read")
        return self.adapter.file_read(self.path)

    def download_url(self) -> str:
        self._require_file("download_url")
        return self.adapter.download_url(self.path)

    def versions(
        self,
        start_version: int | None = None,
        stop_version: int | None = None,
        limit: int | None = None,
    ) -> list[Item]:
        self._require_file("versions")
        return self.adapter.file_versions(
            self.path, start_version, stop_version, limit
        )

    # Shared operations

    def move_to(
        self,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        if self.is_folder:
            return self.adapter.move_folder(self.path, destination, name, exists)
        return self.adapter.move_file(self.path, destination, name, exists)

    def copy_to(
        self,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        if self.is_folder:
            return self.adapter.copy_folder(self.path, destination, name, exists)
        return self.adapter.copy_file(self.path, destination, name, exists)

    def delete(self, commit: bool = False, force: bool = False) -> bool:
        """Delete this item.

        Args:
            commit: Delete immediately instead of moving to the trash (folders only).
            force: Delete non-empty folders.
        """
        if self.is_folder:
            return self.adapter.delete_folder(self.path, commit=commit, force=force)
        return self.adapter.delete_file(self.path, force=force)

    def change_attributes(
        self,
        values: dict[str, Any],
        conflict: VersionConflict | str = VersionConflict.FAIL,
    ) -> Item:
        """Alter meta attributes (name, application_data, ...) of this item."""
        if self.is_folder:
            return self.adapter.alter_folder_meta(self.path, values, conflict)
        return self.adapter.alter_file_meta(self.path, values, conflict)

    def restore(
        self,
        destination: str | None = None,
        method: RestoreMethod | str = RestoreMethod.FAIL,
    ) -> bool:
        """Restore this item from the trash."""
        return self.adapter.restore(self.path, destination, method)


# =============================================================================
# Shares
# =============================================================================


class Share(_AdapterBound):
    """A share of one or more items."""

    share_key: str = Field(..., description="Key identifying the share")
    share_name: str = Field(default="", description="Display name")
    share_type: str = Field(default="", description="Type of the shared content")
    url: str = Field(default="", description="Public URL")
    short_url: str = Field(default="", description="Shortened public URL")
    share_size: int | None = Field(default=None, description="Total size in bytes")
    date_created: float | None = None
    is_password_protected: bool = Field(default=False)
    paths: list[str] = Field(default_factory=list, description="Shared paths")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @classmethod
    def from_response(
        cls,
        data: dict[str, Any],
        adapter: RESTAdapter | None = None,
        paths: list[str] | None = None,
    ) -> Share:
        share = cls.model_validate(data)
        if paths:
            share.paths = list(paths)
        share.bind(adapter)
        return share

    def browse(self, path: str | None = None) -> list[Item]:
        """Browse the items in this share."""
        return self.adapter.browse_share(self.share_key, path)

    def unlock(self, password: str) -> bool:
        return self.adapter.unlock_share(self.share_key, password)

    def receive(self, path: str, exists: Exists | str = Exists.OVERWRITE) -> bool:
        """Copy the shared items into `path` of the current account."""
        return self.adapter.receive_share(self.share_key, path, exists)

    def alter(self, values: dict[str, Any], password: str | None = None) -> Share:
        return self.adapter.alter_share(self.share_key, values, password)

    def change_name(self, name: str, password: str | None = None) -> Share:
        return self.alter({"name": name}, password)

    def change_password(
        self, new_password: str, current_password: str | None = None
    ) -> Share:
        return self.alter({"password": new_password}, current_password)

    def delete(self) -> bool:
        return self.adapter.delete_share(self.share_key)

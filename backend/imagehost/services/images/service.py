from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from datetime import datetime

from imagehost.services._shared.base import BaseService, ServiceContext
from imagehost.services._shared.errors import (
    ForbiddenReorderError,
    ImageNotFoundError,
    NoImagesFoundError,
    StorageUnavailableError,
)
from imagehost.services._shared.policies.uploads import check_batch, check_blob, clean_title
from imagehost.services._shared.ports.object_storage import (
    ObjectStorageGateway,
    StoredObject,
    UploadedBlob,
)
from imagehost.services.images.dto import (
    ImageOut,
    ImagePageOut,
    ImageStatsOut,
    UploadLimits,
)

BYTES_PER_MB = 1024 * 1024


def _stored_fields(stored: StoredObject, blob: UploadedBlob) -> dict:
    return {
        "public_id": stored.descriptor,
        "url": stored.url,
        "thumbnail_url": stored.thumbnail_url,
        "format": stored.format,
        "bytes": stored.bytes,
        "width": stored.width,
        "height": stored.height,
        "original_name": blob.filename,
    }


class ImageLifecycleService(BaseService):
    """
    Owner-scoped image operations: list, upload, update, delete, reorder,
    and statistics.

    Binaries go to the storage gateway, metadata to the image store. The
    two are not transactional together, so the rules are:

    * create/replace: store the blob first, then commit the row; if the row
      cannot be committed the new blob is deleted again (best effort);
    * delete: commit the row removal first, then release the blob; a storage
      failure at that point is logged and otherwise ignored.

    Every lookup is scoped by ``user_id``; a foreign id behaves exactly like a
    missing one.
    """

    def __init__(
        self,
        *,
        storage: ObjectStorageGateway,
        limits: UploadLimits | None = None,
        folder: str = "images",
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(ctx=ctx, clock=clock)
        self.storage = storage
        self.limits = limits or UploadLimits()
        self.folder = folder

    # ------------------------------------------------------------------ #
    # Storage helpers
    # ------------------------------------------------------------------ #

    def _folder_for(self, user_id: int) -> str:
        return f"{self.folder}/{user_id}"

    def _release(self, descriptor: str) -> None:
        """Delete a blob, logging instead of raising when storage is down."""
        try:
            self.storage.delete(descriptor)
        except StorageUnavailableError:
            self.log.warning(
                "Could not release stored blob", extra={"descriptor": descriptor}, exc_info=True
            )

    def _persist_new(self, user_id: int, title: str, blob: UploadedBlob, order: int | None) -> ImageOut:
        """Store ``blob`` and commit its row, compensating if the commit fails."""
        stored = self.storage.store(blob, folder=self._folder_for(user_id))
        try:
            with self.rw_uow() as uow:
                if order is None:
                    order = uow.images.next_order(user_id)
                image = uow.images.create(
                    user_id=user_id,
                    title=title,
                    order=order,
                    **_stored_fields(stored, blob),
                )
                out = ImageOut.from_model(image)
        except Exception:
            self.log.error(
                "Image metadata not saved; releasing blob",
                extra={"descriptor": stored.descriptor, "user_id": user_id},
            )
            self._release(stored.descriptor)
            raise
        return out

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def list_images(self, user_id: int, *, page: int = 1, page_size: int = 20) -> ImagePageOut:
        """
        Return one page of the user's images, ordered by ``order`` ascending
        then newest first.

        ``page`` is clamped to ``>= 1`` and ``page_size`` to ``[1, 50]``.
        """
        with self.ro_uow() as uow:
            images, total, page, limit = uow.images.find_by_owner(
                user_id, page=page, page_size=page_size
            )
            items = [ImageOut.from_model(image) for image in images]
        total_pages = math.ceil(total / limit) if total else 0
        return ImagePageOut(
            images=items,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
            page=page,
            limit=limit,
        )

    def get_image_stats(self, user_id: int) -> ImageStatsOut:
        with self.ro_uow() as uow:
            agg = uow.images.aggregate_stats(user_id, self.now())
        return ImageStatsOut(
            total_images=agg.total_images,
            total_size_bytes=agg.total_bytes,
            total_size_mb=round(agg.total_bytes / BYTES_PER_MB, 2),
            recent_uploads=agg.recent_uploads,
        )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def upload_image(self, user_id: int, blob: UploadedBlob, title: str) -> ImageOut:
        """
        Store one image and append it after the user's current last image.

        :raises ValidationError: Missing title or a blob outside the upload policy.
        :raises StorageUnavailableError: The provider rejected or timed out.
        """
        cleaned = clean_title(title)
        check_blob(blob, max_bytes=self.limits.max_bytes)
        out = self._persist_new(user_id, cleaned, blob, order=None)
        self.log.info("Image uploaded", extra={"user_id": user_id, "image_id": out.id})
        return out

    def bulk_upload_images(
        self, user_id: int, blobs: Sequence[UploadedBlob], titles: Sequence[str]
    ) -> list[ImageOut]:
        """
        Upload several images with consecutive orders after the current last one.

        The whole batch is validated before anything is stored. Items are then
        committed one by one, so a failure midway keeps the earlier items and
        re-raises.

        :raises TitleCountMismatchError: ``len(titles) != len(blobs)``.
        :raises InvalidUploadError: Empty batch, too many files, or a bad file.
        """
        check_batch(
            blobs,
            titles,
            max_bytes=self.limits.max_bytes,
            max_files=self.limits.max_files,
        )
        with self.ro_uow() as uow:
            base_order = uow.images.next_order(user_id)

        created: list[ImageOut] = []
        for offset, (blob, title) in enumerate(zip(blobs, titles, strict=True)):
            try:
                created.append(
                    self._persist_new(user_id, clean_title(title), blob, order=base_order + offset)
                )
            except Exception:
                self.log.warning(
                    "Bulk upload stopped after %d of %d images",
                    len(created),
                    len(blobs),
                    extra={"user_id": user_id},
                )
                raise
        self.log.info(
            "Bulk upload finished",
            extra={"user_id": user_id, "image_ids": [image.id for image in created]},
        )
        return created

    def update_image(
        self,
        image_id: int,
        user_id: int,
        *,
        title: str | None = None,
        blob: UploadedBlob | None = None,
    ) -> ImageOut:
        """
        Change the title and/or replace the binary of an owned image.

        A replacement blob is stored before the row changes; the previous blob
        is released only after the row points at the new one.

        :raises ImageNotFoundError: Missing or owned by someone else.
        """
        fields: dict = {}
        if title is not None:
            fields["title"] = clean_title(title)
        if blob is not None:
            check_blob(blob, max_bytes=self.limits.max_bytes)

        with self.ro_uow() as uow:
            if uow.images.get_owned(image_id, user_id) is None:
                raise ImageNotFoundError()

        stored = None
        if blob is not None:
            stored = self.storage.store(blob, folder=self._folder_for(user_id))
            fields.update(_stored_fields(stored, blob))

        old_descriptor = None
        try:
            with self.rw_uow() as uow:
                image = uow.images.get_owned(image_id, user_id)
                if image is None:
                    raise ImageNotFoundError()
                old_descriptor = image.public_id
                if fields:
                    uow.images.update(image, **fields)
                out = ImageOut.from_model(image)
        except Exception:
            if stored is not None:
                self._release(stored.descriptor)
            raise

        if stored is not None and old_descriptor and old_descriptor != stored.descriptor:
            self._release(old_descriptor)
        self.log.info("Image updated", extra={"user_id": user_id, "image_id": image_id})
        return out

    def delete_image(self, image_id: int, user_id: int) -> None:
        """
        Delete an owned image row, then its blob.

        :raises ImageNotFoundError: Missing or owned by someone else.
        """
        with self.rw_uow() as uow:
            image = uow.images.get_owned(image_id, user_id)
            if image is None:
                raise ImageNotFoundError()
            descriptor = image.public_id
            uow.images.delete(image)
        self._release(descriptor)
        self.log.info("Image deleted", extra={"user_id": user_id, "image_id": image_id})

    def bulk_delete_images(self, image_ids: Sequence[int], user_id: int) -> int:
        """
        Delete the owned subset of ``image_ids``; foreign ids are ignored.

        :returns: Number of rows deleted.
        :raises NoImagesFoundError: None of the ids belong to the user.
        """
        with self.rw_uow() as uow:
            owned = uow.images.find_owned(image_ids, user_id)
            if not owned:
                raise NoImagesFoundError()
            descriptors = [image.public_id for image in owned]
            deleted = uow.images.delete_many([image.id for image in owned])
        for descriptor in descriptors:
            self._release(descriptor)
        self.log.info(
            "Images deleted", extra={"user_id": user_id, "image_ids": list(image_ids)}
        )
        return deleted

    def rearrange_images(self, user_id: int, ordered_ids: Sequence[int]) -> None:
        """
        Set ``order`` to each id's position in ``ordered_ids``.

        All-or-nothing: when any id is missing or foreign nothing changes.

        :raises ForbiddenReorderError: Some ids are not owned by the user.
        """
        if not ordered_ids:
            return
        with self.rw_uow() as uow:
            owned = set(uow.images.find_owned_ids(ordered_ids, user_id))
            if owned != set(ordered_ids):
                raise ForbiddenReorderError()
            uow.images.update_orders(
                [(image_id, index) for index, image_id in enumerate(ordered_ids)]
            )
        self.log.info(
            "Images rearranged", extra={"user_id": user_id, "image_ids": list(ordered_ids)}
        )

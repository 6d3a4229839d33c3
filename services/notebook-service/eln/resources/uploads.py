"""Attached files metadata; storage of the files lives outside this service."""

from typing import Dict, List, Optional

from .. import filters
from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..models import Upload
from .base import EntityResource


class Uploads(EntityResource):
    def create(
        self,
        real_name: str,
        long_name: str,
        file_hash: Optional[str] = None,
        comment: str = "",
        upload_type: Optional[str] = None,
    ) -> int:
        """
        Register an uploaded file.

        Args:
            real_name: Name of the file as uploaded
            long_name: Storage name of the file
            file_hash: Checksum of the content
            comment: Free text
            upload_type: Defaults to the entity type; timestamping uses its own types
        """
        self.entity.can_or_explode("write")
        if not real_name or not long_name:
            raise ImproperActionException("Missing file name")
        upload = Upload(
            real_name=filters.title(real_name),
            long_name=long_name,
            comment=filters.title(comment) if comment else "",
            item_id=self.entity.id,
            userid=self.user.userid,
            type=upload_type or self.entity.type.value,
            hash=file_hash,
        )
        self.db.add(upload)
        self.db.commit()
        self.db.refresh(upload)
        return upload.id

    def read_all(self, upload_type: Optional[str] = None) -> List[Dict]:
        rows = (
            self.db.query(Upload)
            .filter(
                Upload.item_id == self._require_id(),
                Upload.type == (upload_type or self.entity.type.value),
            )
            .order_by(Upload.id)
            .all()
        )
        return [
            {
                "id": row.id,
                "real_name": row.real_name,
                "long_name": row.long_name,
                "comment": row.comment,
                "userid": row.userid,
                "type": row.type,
                "hash": row.hash,
                "datetime": row.datetime,
            }
            for row in rows
        ]

    def update_comment(self, upload_id: int, comment: str) -> None:
        self.entity.can_or_explode("write")
        self._get(upload_id).comment = filters.title(comment) if comment else ""
        self.db.commit()

    def destroy(self, upload_id: int) -> None:
        self.entity.can_or_explode("write")
        self.db.delete(self._get(upload_id))
        self.db.commit()

    def destroy_all(self) -> None:
        self.db.query(Upload).filter(
            Upload.item_id == self._require_id(),
            Upload.type == self.entity.type.value,
        ).delete(synchronize_session=False)

    def _get(self, upload_id: int) -> Upload:
        upload = (
            self.db.query(Upload)
            .filter(
                Upload.id == upload_id,
                Upload.item_id == self.entity.id,
                Upload.type == self.entity.type.value,
            )
            .first()
        )
        if upload is None:
            raise ResourceNotFoundException("upload", upload_id)
        return upload

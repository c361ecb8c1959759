# blob_store.py
"""
Blob storage for uploaded report files.

put(bytes) -> reference, get(reference) -> bytes or None. References are
opaque to the rest of the service. The backend is chosen by BLOB_BACKEND.
"""
import asyncio
import logging
import os
import uuid
from typing import Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from config import (
     AZURE_STORAGE_ACCOUNT,
     AZURE_STORAGE_CONTAINER,
     AZURE_STORAGE_KEY,
     BLOB_BACKEND,
     UPLOAD_DIR,
)

logger = logging.getLogger(__name__)


class BlobStore:
     """Interface for blob backends."""

     async def put(self, data: bytes, filename: Optional[str] = None) -> str:
          raise NotImplementedError

     async def get(self, ref: str) -> Optional[bytes]:
          raise NotImplementedError

     async def exists(self, ref: str) -> bool:
          return await self.get(ref) is not None


class LocalBlobStore(BlobStore):
     """Files under a local upload directory, named by UUID."""

     def __init__(self, directory: str = UPLOAD_DIR):
          self.directory = directory
          os.makedirs(self.directory, exist_ok=True)

     def _path(self, ref: str) -> str:
          # refs are generated names; anything with a path component is foreign
          if not ref or os.path.basename(ref) != ref:
               raise ValueError(f"Invalid blob reference: {ref!r}")
          return os.path.join(self.directory, ref)

     def _write(self, path: str, data: bytes) -> None:
          tmp_path = f"{path}.part"
          with open(tmp_path, "wb") as buffer:
               buffer.write(data)
               buffer.flush()
               os.fsync(buffer.fileno())
          os.replace(tmp_path, path)

     def _read(self, path: str) -> Optional[bytes]:
          try:
               with open(path, "rb") as f:
                    return f.read()
          except FileNotFoundError:
               return None

     async def put(self, data: bytes, filename: Optional[str] = None) -> str:
          ext = os.path.splitext(filename)[1] if filename else ""
          ref = f"{uuid.uuid4()}{ext}"
          await asyncio.to_thread(self._write, self._path(ref), data)
          logger.info(f"Stored blob {ref} ({len(data)} bytes)")
          return ref

     async def get(self, ref: str) -> Optional[bytes]:
          try:
               path = self._path(ref)
          except ValueError:
               return None
          return await asyncio.to_thread(self._read, path)

     async def exists(self, ref: str) -> bool:
          try:
               path = self._path(ref)
          except ValueError:
               return False
          return await asyncio.to_thread(os.path.isfile, path)


class AzureBlobStore(BlobStore):
     """Azure Storage container; the blob name is the reference."""

     def __init__(
          self,
          account: Optional[str] = AZURE_STORAGE_ACCOUNT,
          key: Optional[str] = AZURE_STORAGE_KEY,
          container: str = AZURE_STORAGE_CONTAINER
     ):
          if not account or not key:
               raise RuntimeError("AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY must be set")
          self.container = container
          self.blob_service = BlobServiceClient.from_connection_string(
               f"DefaultEndpointsProtocol=https;"
               f"AccountName={account};"
               f"AccountKey={key};"
               f"EndpointSuffix=core.windows.net"
          )

     def _upload(self, name: str, data: bytes) -> None:
          blob_client = self.blob_service.get_blob_client(container=self.container, blob=name)
          blob_client.upload_blob(data, overwrite=False)

     def _download(self, name: str) -> Optional[bytes]:
          blob_client = self.blob_service.get_blob_client(container=self.container, blob=name)
          try:
               return blob_client.download_blob().readall()
          except ResourceNotFoundError:
               return None

     def _exists(self, name: str) -> bool:
          blob_client = self.blob_service.get_blob_client(container=self.container, blob=name)
          return blob_client.exists()

     async def put(self, data: bytes, filename: Optional[str] = None) -> str:
          ext = os.path.splitext(filename)[1] if filename else ""
          name = f"{uuid.uuid4()}{ext}"
          await asyncio.to_thread(self._upload, name, data)
          logger.info(f"Uploaded blob {name} to container {self.container}")
          return name

     async def get(self, ref: str) -> Optional[bytes]:
          return await asyncio.to_thread(self._download, ref)

     async def exists(self, ref: str) -> bool:
          return await asyncio.to_thread(self._exists, ref)


_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
     """FastAPI dependency returning the configured blob store."""
     global _store
     if _store is None:
          if BLOB_BACKEND == "azure":
               _store = AzureBlobStore()
          else:
               _store = LocalBlobStore()
     return _store

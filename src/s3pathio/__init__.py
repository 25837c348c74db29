"""Filesystem-style paths and buffered I/O handles for S3 objects."""

from s3pathio.buffers import ReadBuffer, WriteBuffer, open_path
from s3pathio.context import StoreConfig, default_config, set_default_config
from s3pathio.errors import (
    EndOfStream,
    HandleClosed,
    InvalidMode,
    InvalidPath,
    NotADirectory,
    NotFound,
    NotReadable,
    NotWritable,
    PreconditionViolation,
    S3PathError,
    TransientIOError,
    UploadFailed,
    ValidationError,
)
from s3pathio.fs import Probe, ProbeStatus
from s3pathio.listing import list_dir
from s3pathio.path import S3Path, join, split_dir
from s3pathio.retry import RetryPolicy

open = open_path

__all__ = [
    "EndOfStream",
    "HandleClosed",
    "InvalidMode",
    "InvalidPath",
    "NotADirectory",
    "NotFound",
    "NotReadable",
    "NotWritable",
    "PreconditionViolation",
    "Probe",
    "ProbeStatus",
    "ReadBuffer",
    "RetryPolicy",
    "S3Path",
    "S3PathError",
    "StoreConfig",
    "TransientIOError",
    "UploadFailed",
    "ValidationError",
    "WriteBuffer",
    "default_config",
    "join",
    "list_dir",
    "open",
    "open_path",
    "set_default_config",
    "split_dir",
]

from docbatch.upload.base import BaseUploadSink
from docbatch.upload.drive_uploader import DriveUploadSink
from docbatch.upload.factory import UploadSinkFactory
from docbatch.upload.history import UploadHistory

__all__ = ["BaseUploadSink", "DriveUploadSink", "UploadHistory", "UploadSinkFactory"]

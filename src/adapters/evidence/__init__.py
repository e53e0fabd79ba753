"""Evidence adapters - DNS and website ownership checks."""

from .dns_txt import DnsTxtStrategy
from .manual import ManualReviewStrategy
from .web import FileUploadStrategy, MetaTagStrategy

__all__ = ["DnsTxtStrategy", "FileUploadStrategy", "ManualReviewStrategy", "MetaTagStrategy"]

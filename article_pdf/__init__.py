"""
article-pdf: generate PDFs of published articles from a Django site.
"""

from .defaults import LIBRARY_NAME, LIBRARY_VERSION

__version__ = LIBRARY_VERSION
__title__ = LIBRARY_NAME

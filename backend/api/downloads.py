"""
File Download API Endpoints

Serves files from the configured FILES_ROOT with HTTP Range support so large
files can be resumed or scrubbed without a full download.
"""

import mimetypes
import logging

import dependencies
from api.endpoint import Endpoint
from constants import ContentTypes, HttpVerb
from dtos.request.download_request import DownloadRequest

logger = logging.getLogger(__name__)


class DownloadFileEndpoint(Endpoint[DownloadRequest, None]):
    """GET /api/files/{file_name} (also served under /api/downloads/{file_name})"""

    endpoint_name = "DownloadFile"
    verbs = [HttpVerb.GET]
    routes = ["/api/files/{file_name}", "/api/downloads/{file_name}"]
    request_model = DownloadRequest

    async def handle(self, req: DownloadRequest):
        config = self.resolve(dependencies.CONFIG)
        path = config.files_root / req.file_name

        content_type, _ = mimetypes.guess_type(str(path))
        # NotFoundError from a missing file becomes a 404 via the app's error handlers
        await self.send_file(
            path,
            content_type=content_type or ContentTypes.OCTET_STREAM,
            enable_range_processing=True,
        )


class HealthEndpoint(Endpoint[None, None]):
    """GET /api/health"""

    endpoint_name = "Health"
    verbs = [HttpVerb.GET]
    routes = ["/api/health"]

    async def handle(self, req):
        await self.send_string("Healthy")

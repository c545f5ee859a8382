"""
Firebase Functions entrypoint for the recent-episodes add-on.

Deploy with `firebase deploy --only functions`; the function is served at
/api and answers manifest, catalog and meta requests.
"""

from firebase_functions import https_fn, options

from utils.setup_logging import setup_cloud_logging

setup_cloud_logging()

from api.tvmaze.handlers import tvmaze_handler  # noqa: E402


@https_fn.on_request(
    memory=options.MemoryOption.MB_512,
    timeout_sec=300,  # a cold show-scan catalog build can take minutes
    min_instances=0,
)
def api(req: https_fn.Request) -> https_fn.Response:
    """
    Recent TVmaze episodes add-on.

    Usage:
        GET /api?manifest
        GET /api?catalog=recent&type=series
        GET /api?id=tvmaze:82&type=series
    """
    return tvmaze_handler.handle(req)

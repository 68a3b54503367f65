import requests

from utils.response import Response


def download(url, config, logger=None):
    """
    Fetch a page with the configured User-Agent and timeout.

    Never raises for network problems; the returned Response carries
    the error instead, with a status of 600 or above.
    """
    try:
        resp = requests.get(
            url, headers={"User-Agent": config.user_agent},
            timeout=config.timeout)
    except requests.exceptions.InvalidURL as e:
        return Response(url, 601, error=f"invalid url: {e}")
    except requests.exceptions.RequestException as e:
        if logger:
            logger.info(f"Failed to download {url}: {e}")
        return Response(url, 600, error=str(e))
    return Response(url, resp.status_code, raw_response=resp)

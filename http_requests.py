# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import logging
import urllib.parse

import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class LoggingRetry(Retry):
    def __init__(
        self,
        **kwargs,
    ):
        defaults = dict(
            total=3,
            connect=3,
            read=3,
            status=3,
            redirect=False,
            status_forcelist=(429, 500, 502, 503, 504),
            raise_on_status=False,
            respect_retry_after_header=True,
            backoff_factor=1.0,
        )

        super().__init__(**(defaults | kwargs))

    def increment(self,
        method=None,
        url=None,
        response=None,
        error=None,
        _pool=None,
        _stacktrace=None
    ):
        # super().increment will either raise an exception indicating that no retry is to
        # be performed or return a new, modified instance of this class
        retry = super().increment(method, url, response, error, _pool, _stacktrace)
        # Use the Retry history to determine the number of retries.
        num_retries = len(self.history) if self.history else 0
        logger.warning(
            f'{method=} {url=} returned {response=} {error=} {num_retries=} - trying again'
        )
        return retry


_default_retry_cfg = LoggingRetry()


def mount_default_adapter(
    session: requests.Session,
    connection_pool_cache_size=32, # requests-library default
    max_pool_size=32, # requests-library default
    retry_cfg: Retry=_default_retry_cfg,
):
    default_http_adapter = HTTPAdapter(
        pool_connections=connection_pool_cache_size,
        pool_maxsize=max_pool_size,
        max_retries=retry_cfg,
    )
    session.mount('http://', default_http_adapter)
    session.mount('https://', default_http_adapter)

    return session


class AuthenticatedRequestBuilder:
    '''
    Wrapper around the 'requests' library for read-only access to JSON-APIs, handling
    authentication-headers and checking for http response codes.
    '''

    def __init__(
            self,
            base_url: str,
            auth_token: str=None,
            auth_scheme: str='token',
            verify_ssl: bool=True,
    ):
        self.base_url = base_url.rstrip('/')
        self.headers = {'Accept': 'application/json'}

        if auth_token:
            self.headers['Authorization'] = f'{auth_scheme} {auth_token}'

        self.session = mount_default_adapter(requests.Session())
        self.verify_ssl = verify_ssl

    def url(self, *parts: str | int) -> str:
        return '/'.join(
            (self.base_url, *(urllib.parse.quote(str(part), safe='') for part in parts))
        )

    def _check_http_code(self, result: requests.Response, url: str):
        if not result.ok:
            logger.warning(
                f'rq against {url=} returned {result.status_code=} {result.content=}'
            )
            result.raise_for_status()

    def get(
        self,
        url: str,
        check_http_code: bool=True,
        **kwargs,
    ) -> requests.Response:
        try:
            timeout = kwargs.pop('timeout')
        except KeyError:
            timeout = (4, 31)

        result = self.session.get(
            url,
            headers=self.headers,
            verify=self.verify_ssl,
            timeout=timeout,
            **kwargs
        )

        if check_http_code:
            self._check_http_code(result, url)

        return result

    def iter_pages(
        self,
        url: str,
        params: dict | None=None,
        page_size: int=50,
        max_items: int | None=None,
    ) -> collections.abc.Generator[dict, None, None]:
        '''
        yields items from a paginated JSON-API (`page` / `limit` query-parameters), until an
        empty (or short) page is returned, or `max_items` were yielded.
        '''
        params = dict(params or {})
        page = 1
        yielded = 0

        while True:
            res = self.get(url, params=params | {'page': page, 'limit': page_size})
            items = res.json() or []

            for item in items:
                if max_items is not None and yielded >= max_items:
                    return
                yield item
                yielded += 1

            if max_items is not None and yielded >= max_items:
                return
            if len(items) < page_size:
                return
            page += 1

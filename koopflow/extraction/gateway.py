"""Client for the external PDF extraction service."""

import json
import logging
import time

import httpx
from flask import current_app

from koopflow.errors import ExtractionTimeout, GatewayFailure

logger = logging.getLogger(__name__)


class ExtractionGateway:
    """
    Sends a PDF to the extraction service and returns the extracted JSON.

    Request body:
        {"file": <base64>, "filename": <naam>, "tenant": <organization domain>}

    Any non-success outcome raises GatewayFailure (or ExtractionTimeout) with a
    JSON-serializable ``diagnostic``. The caller decides how to record it.
    """

    def __init__(self, url, api_key='', timeout=30.0, transport=None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config):
        return cls(
            url=config['EXTRACTION_API_URL'],
            api_key=config.get('EXTRACTION_API_KEY', ''),
            timeout=config.get('EXTRACTION_TIMEOUT', 30.0),
        )

    def _client(self):
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def _post(self, payload, headers):
        """
        POST and read the whole body within ``timeout`` seconds.

        httpx bounds each phase (connect, write, read) separately, so a service
        that keeps trickling bytes is cut off at the overall deadline here.
        """
        deadline = time.monotonic() + self.timeout
        with self._client() as client:
            with client.stream('POST', self.url, json=payload, headers=headers) as response:
                chunks = []
                for chunk in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise httpx.ReadTimeout(
                            'overall deadline exceeded while reading response',
                            request=response.request
                        )
                    chunks.append(chunk)
                return response.status_code, b''.join(chunks)

    def extract(self, file, filename, tenant):
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['x-api-key'] = self.api_key

        payload = {'file': file, 'filename': filename, 'tenant': tenant}

        try:
            status_code, content = self._post(payload, headers)
        except httpx.TimeoutException as e:
            logger.warning(f"Extraction of {filename} timed out after {self.timeout}s")
            raise ExtractionTimeout(
                f'Extraction service did not respond within {self.timeout:g} seconds',
                diagnostic=f'timeout after {self.timeout:g}s: {e}'
            )
        except httpx.HTTPError as e:
            logger.warning(f"Extraction request for {filename} failed: {e}")
            raise GatewayFailure(
                'Could not reach the extraction service',
                diagnostic=str(e) or e.__class__.__name__
            )

        text = content.decode('utf-8', errors='replace')

        if not 200 <= status_code < 300:
            try:
                body = json.loads(text)
            except ValueError:
                body = text
            logger.warning(
                f"Extraction service returned {status_code} for {filename}"
            )
            raise GatewayFailure(
                f'Extraction service returned status {status_code}',
                diagnostic={'status': status_code, 'body': body}
            )

        try:
            return json.loads(text)
        except ValueError:
            raise GatewayFailure(
                'Extraction service returned malformed JSON',
                diagnostic={'status': status_code, 'body': text[:1000]}
            )


def get_extraction_gateway():
    """Gateway registered on the app, or one built from the app config."""
    gateway = current_app.extensions.get('extraction_gateway')
    if gateway is None:
        gateway = ExtractionGateway.from_config(current_app.config)
        current_app.extensions['extraction_gateway'] = gateway
    return gateway

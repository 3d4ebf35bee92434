"""
jobs.py — Scheduled social cache refresh

Runs one fetch-and-cache cycle and exits. Meant to be invoked by an
external timer (cron, a platform scheduler):

  */30 * * * *  clubsite-social-refresh

The exit status is always 0; upstream failures are logged, not raised.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from clubsite.config import Settings, load_settings
from clubsite.feeds import RemoteStore, SocialFeedFetcher
from clubsite.models import RefreshSummary

log = logging.getLogger("clubsite.jobs")


async def run_social_refresh(
    settings: Settings,
    remote_transport: httpx.AsyncBaseTransport | None = None,
    social_transport: httpx.AsyncBaseTransport | None = None,
) -> RefreshSummary:
    store = RemoteStore(
        settings.remote_store_url,
        token=settings.remote_store_token,
        timeout=settings.http_timeout,
        transport=remote_transport,
    )
    fetcher = SocialFeedFetcher(settings, store, transport=social_transport)
    try:
        return await fetcher.refresh()
    finally:
        await fetcher.close()
        await store.close()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(name)-16s │ %(levelname)-7s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    summary = asyncio.run(run_social_refresh(load_settings()))
    log.info(f"Social refresh: ok={summary.ok} count={summary.count}: {summary.message}")


if __name__ == "__main__":
    main()

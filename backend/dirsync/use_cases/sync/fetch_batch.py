"""BatchFetcher — pull one page of users from a directory and apply them.

A failing record is logged and skipped; the rest of the page is still
applied.  A directory that cannot be reached raises before anything is
applied.
"""

from __future__ import annotations

import logging

from dirsync.domain.common.errors import MalformedRecordError
from dirsync.domain.sync.models import ApplyOutcome, BatchResult, DirectoryProfile
from dirsync.domain.sync.ports import DirectoryClientFactory, IdentityMapper

logger = logging.getLogger(__name__)


class BatchFetcher:
    """Fetch a bounded page of user records and hand them to the mapper."""

    def __init__(self, client_factory: DirectoryClientFactory, search_term: str = "") -> None:
        self._client_factory = client_factory
        self._search_term = search_term

    def fetch_batch(
        self, mapper: IdentityMapper, profile: DirectoryProfile, offset: int
    ) -> BatchResult:
        client = self._client_factory.for_profile(profile)

        search_filter = client.combine_filter([
            profile.user_filter,
            f"{profile.display_name_attribute}=*",
            client.user_search_filter(self._search_term),
        ])
        records = client.fetch_page(
            search_filter,
            mapper.requested_attributes(profile),
            profile.paging_size,
            offset,
        )

        applied = skipped = 0
        for record in records:
            try:
                outcome = mapper.apply_record(profile, record)
            except MalformedRecordError as e:
                logger.warning("Skipping record from profile %r: %s", profile.prefix, e)
                skipped += 1
                continue
            if outcome is ApplyOutcome.SKIPPED_ALREADY_MAPPED:
                logger.debug("Skipping %s: name already mapped to another entry", record.dn)
                skipped += 1
            else:
                applied += 1

        logger.info(
            f"Fetched {len(records)} records from profile {profile.prefix!r} "
            f"(offset={offset}, page_size={profile.paging_size}, "
            f"applied={applied}, skipped={skipped})"
        )
        return BatchResult(
            fetched_count=len(records),
            page_size=profile.paging_size,
            applied=applied,
            skipped=skipped,
        )

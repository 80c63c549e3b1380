"""
Snapshot governance data: votes cast by the wallet and proposals it authored.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_walletscore.config.env import DEFAULT_SNAPSHOT_URL
from backend_walletscore.core.exceptions import NoDataError
from backend_walletscore.integrations.http import graphql_query
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

MAX_ITEMS = 1000

VOTES_QUERY = """
query Votes($voter: String!, $first: Int!) {
  votes(first: $first, where: {voter: $voter}, orderBy: "created", orderDirection: desc) {
    id
    created
    choice
    space { id }
    proposal { id title }
  }
}
"""

PROPOSALS_QUERY = """
query Proposals($author: String!, $first: Int!) {
  proposals(first: $first, where: {author: $author}, orderBy: "created", orderDirection: desc) {
    id
    title
    created
    state
    space { id }
  }
}
"""


class SnapshotClient:
    def __init__(self, client: httpx.AsyncClient, url: str = DEFAULT_SNAPSHOT_URL) -> None:
        self._client = client
        self.url = url

    async def get_votes(self, address: str) -> list[dict[str, Any]]:
        data = await graphql_query(
            self._client, self.url, VOTES_QUERY, {"voter": address, "first": MAX_ITEMS}, provider="snapshot"
        )
        votes = [
            {
                "id": v.get("id"),
                "created": v.get("created"),
                "choice": v.get("choice"),
                "space": (v.get("space") or {}).get("id"),
                "proposal_id": (v.get("proposal") or {}).get("id"),
                "proposal_title": (v.get("proposal") or {}).get("title"),
            }
            for v in data.get("votes") or []
        ]
        if not votes:
            raise NoDataError("no Snapshot votes")
        logger.debug("snapshot_votes_fetched", wallet=address, votes=len(votes))
        return votes

    async def get_proposals(self, address: str) -> list[dict[str, Any]]:
        data = await graphql_query(
            self._client,
            self.url,
            PROPOSALS_QUERY,
            {"author": address, "first": MAX_ITEMS},
            provider="snapshot",
        )
        proposals = [
            {
                "id": p.get("id"),
                "title": p.get("title"),
                "created": p.get("created"),
                "state": p.get("state"),
                "space": (p.get("space") or {}).get("id"),
            }
            for p in data.get("proposals") or []
        ]
        if not proposals:
            raise NoDataError("no Snapshot proposals")
        return proposals

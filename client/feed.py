import asyncio
import logging
from enum import Enum

import httpx

from models import Experience, ExperiencePage

logger = logging.getLogger(__name__)


class FeedState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    LOADING_MORE = "loading_more"
    IDLE = "idle"
    ERROR = "error"


class FeedSession:
    """One browsing session over the experience feed.

    Keeps the loaded experiences in order, the ids already shown, the
    current position and whether the server has more to give. Pages are
    requested with every seen id so the server never repeats a product.
    Interactions are posted in the background and their failures are only
    logged, so a gesture never fails because tracking did.
    """

    def __init__(
        self,
        base_url: str = "",
        api_key: str | None = None,
        user_id: str | None = None,
        batch_size: int = 5,
        prefetch_distance: int = 2,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        if client is None:
            headers = {"apikey": api_key} if api_key else None
            client = httpx.AsyncClient(base_url=base_url, headers=headers)
        self._client = client
        self.user_id = user_id
        self.batch_size = batch_size
        self.prefetch_distance = prefetch_distance

        self.experiences: list[Experience] = []
        self.seen_ids: set[str] = set()
        self.index = 0
        self.has_more = True
        self.state = FeedState.LOADING
        self._loading = False
        self._pending: set[asyncio.Task] = set()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    @property
    def current(self) -> Experience | None:
        if 0 <= self.index < len(self.experiences):
            return self.experiences[self.index]
        return None

    def needs_more(self) -> bool:
        return (
            self.has_more
            and not self._loading
            and self.index >= len(self.experiences) - self.prefetch_distance
        )

    async def _fetch_page(self, target: str | None = None) -> ExperiencePage:
        params: dict[str, str | int] = {"limit": self.batch_size}
        if self.experiences:
            params["loadedIds"] = ",".join(exp.id for exp in self.experiences)
        if target:
            params["p"] = target
        response = await self._client.get("/api/products", params=params)
        response.raise_for_status()
        return ExperiencePage.model_validate(response.json())

    def _append(self, page: ExperiencePage) -> int:
        added = 0
        for experience in page.experiences:
            if experience.id in self.seen_ids:
                continue
            self.seen_ids.add(experience.id)
            self.experiences.append(experience)
            added += 1
        self.has_more = page.has_more
        return added

    async def start(self, target: str | None = None) -> Experience | None:
        """Load the first page, opening on ``target`` when it exists"""
        self.state = FeedState.LOADING
        self._loading = True
        try:
            page = await self._fetch_page(target)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching experiences: {e}")
            self.state = FeedState.ERROR
            return None
        finally:
            self._loading = False

        self._append(page)
        self.index = 0
        self.state = FeedState.READY if self.experiences else FeedState.IDLE
        return self.current

    async def load_more(self) -> int:
        """Fetch the next page, returns how many new experiences arrived"""
        # Flag is set before the first await so overlapping calls bail out
        if self._loading or not self.has_more:
            return 0
        self._loading = True
        self.state = FeedState.LOADING_MORE
        try:
            page = await self._fetch_page()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching more experiences: {e}")
            self.state = FeedState.ERROR
            return 0
        finally:
            self._loading = False

        added = self._append(page)
        self.state = FeedState.READY if self.has_more else FeedState.IDLE
        return added

    async def next(self) -> Experience | None:
        """Move forward, returns None when the feed is exhausted"""
        if self.index + 1 >= len(self.experiences):
            await self.load_more()
            if self.index + 1 >= len(self.experiences):
                return None
        self.index += 1
        if self.needs_more():
            await self.load_more()
        return self.current

    async def previous(self) -> Experience | None:
        if self.index == 0:
            return None
        self.index -= 1
        return self.current

    async def like(self) -> Experience | None:
        if self._record(liked=True) is None:
            return None
        return await self.next()

    async def dislike(self) -> Experience | None:
        if self._record(disliked=True) is None:
            return None
        return await self.next()

    async def share(self) -> Experience | None:
        return self._record(clickedShare=True)

    async def view_details(self) -> Experience | None:
        return self._record(clickedDetails=True)

    async def buy(self) -> str | None:
        """Record the click and hand back the external checkout URL"""
        experience = self._record(clickedBuy=True)
        if experience is None:
            return None
        return experience.checkout_url or None

    def _record(self, **flags) -> Experience | None:
        experience = self.current
        if experience is None:
            return None
        payload = {"productId": experience.id, **flags}
        if self.user_id:
            payload["userId"] = self.user_id
        task = asyncio.create_task(self._post_interaction(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return experience

    async def _post_interaction(self, payload: dict):
        try:
            response = await self._client.post("/api/interactions", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to record interaction for {payload['productId']}: {e}")

    async def drain(self):
        """Wait for interactions still in flight"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self):
        await self.drain()
        if self._owns_client:
            await self._client.aclose()

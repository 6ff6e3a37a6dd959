"""Caché de imágenes asíncrona, cancelable y con deduplicación.

Responsabilidad:
- Resolver una URL a un `PosterImage` decodificado, como mucho una vez por URL.
- Compartir la petición de red entre todos los que piden la misma URL
  mientras está en vuelo.
- Permitir que cada llamante cancele *su* interés sin afectar a los demás: la
  descarga compartida solo se cancela cuando se va el último.

Modelo de concurrencia:
- Los dos mapas (URL -> imagen, URL -> petición en vuelo) solo se tocan desde
  el hilo del event loop propietario. `fetch`/`cancel` deben llamarse desde ese
  hilo; son síncronos y no bloquean.
- La decodificación corre en un hilo (`asyncio.to_thread`) y su resultado se
  aplica de vuelta en el loop.
- Los aciertos de caché se entregan con `loop.call_soon`, nunca dentro de la
  propia llamada a `fetch`: todos los callbacks llegan siempre "más tarde".

La caché no tiene desalojo ni límite de tamaño: vive lo que vive el objeto.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from adapters.http_client import describe_transport_error
from adapters.image_decoder import decode_image
from core.domain.errors import ErrorKind, ImageFetchError
from core.domain.models import PosterImage

logger = logging.getLogger(__name__)

ImageDecoder = Callable[[str, bytes], PosterImage]


@dataclass(frozen=True)
class ImageResult:
    """Resultado terminal entregado a un callback: imagen o error, nunca ambos."""

    url: str
    image: PosterImage | None = None
    error: ImageFetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PosterImage:
        if self.error is not None:
            raise self.error
        if self.image is None:
            raise ImageFetchError(ErrorKind.MISSING_DATA, url=self.url)
        return self.image


ImageCallback = Callable[[ImageResult], None]


class _HandleState(Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class FetchHandle:
    """Token opaco devuelto por `ImageFetchCache.fetch`.

    Solo sirve para cancelar el interés de *este* llamante; cancelarlo dos
    veces, o después de recibir el resultado, no hace nada.
    """

    __slots__ = ("url", "_owner", "_callback", "_request", "_state")

    def __init__(
        self,
        owner: ImageFetchCache,
        url: str,
        callback: ImageCallback,
        request: _InFlightRequest | None = None,
    ) -> None:
        self.url = url
        self._owner = owner
        self._callback = callback
        self._request = request
        self._state = _HandleState.PENDING

    @property
    def pending(self) -> bool:
        return self._state is _HandleState.PENDING

    @property
    def cancelled(self) -> bool:
        return self._state is _HandleState.CANCELLED

    @property
    def done(self) -> bool:
        return self._state is _HandleState.DELIVERED

    def cancel(self) -> None:
        self._owner.cancel(self)

    def __repr__(self) -> str:
        return f"<FetchHandle {self._state.value} {self.url}>"


@dataclass(eq=False)
class _InFlightRequest:
    url: str
    waiters: list[FetchHandle] = field(default_factory=list)
    task: asyncio.Task[None] | None = None


def canonical_url(url: str | httpx.URL) -> str:
    """Forma canónica usada como clave (esquema/host normalizados por httpx)."""

    raw = str(url).strip()
    try:
        parsed = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ImageFetchError(ErrorKind.INVALID_INPUT, f"Malformed image URL: {raw!r}", url=raw, cause=exc) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ImageFetchError(ErrorKind.INVALID_INPUT, f"Unsupported image URL: {raw!r}", url=raw)
    return str(parsed)


class ImageFetchCache:
    """Caché en memoria de imágenes decodificadas con peticiones compartidas.

    Se construye explícitamente y se inyecta a quien la use; no hay instancia
    global. No es dueña del `httpx.AsyncClient`: cerrarlo es cosa de quien lo creó.
    """

    def __init__(self, client: httpx.AsyncClient, *, decoder: ImageDecoder = decode_image) -> None:
        self._client = client
        self._decoder = decoder
        self._images: dict[str, PosterImage] = {}
        self._in_flight: dict[str, _InFlightRequest] = {}
        self.stats: dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "coalesced": 0,
            "cancelled": 0,
            "errors": 0,
        }

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------

    def fetch(self, url: str | httpx.URL, callback: ImageCallback) -> FetchHandle:
        """Pide la imagen de `url`; `callback` recibe exactamente un `ImageResult`.

        1. En caché: se programa la entrega del acierto en el loop.
        2. En vuelo: el callback se encola en esa petición, sin I/O nuevo.
        3. Si no: se lanza una descarga y el callback es su primer interesado.
        """

        loop = asyncio.get_running_loop()
        try:
            key = canonical_url(url)
        except ImageFetchError as exc:
            handle = FetchHandle(self, str(url), callback)
            loop.call_soon(self._deliver, handle, ImageResult(url=str(url), error=exc))
            return handle

        cached = self._images.get(key)
        if cached is not None:
            self.stats["hits"] += 1
            handle = FetchHandle(self, key, callback)
            loop.call_soon(self._deliver, handle, ImageResult(url=key, image=cached))
            return handle

        request = self._in_flight.get(key)
        if request is not None:
            self.stats["coalesced"] += 1
            handle = FetchHandle(self, key, callback, request)
            request.waiters.append(handle)
            logger.debug("Joined in-flight image fetch %s (%d waiting)", key, len(request.waiters))
            return handle

        self.stats["misses"] += 1
        request = _InFlightRequest(key)
        handle = FetchHandle(self, key, callback, request)
        request.waiters.append(handle)
        self._in_flight[key] = request
        request.task = loop.create_task(self._run(request), name=f"image-fetch {key}")
        return handle

    def cancel(self, handle: FetchHandle) -> None:
        """Retira el interés de `handle`. Si era el último, aborta la descarga."""

        if handle._state is not _HandleState.PENDING:
            return
        handle._state = _HandleState.CANCELLED
        self.stats["cancelled"] += 1

        request = handle._request
        handle._request = None
        if request is None:
            return
        try:
            request.waiters.remove(handle)
        except ValueError:
            return
        if request.waiters:
            return

        if self._in_flight.get(request.url) is request:
            del self._in_flight[request.url]
        if request.task is not None and not request.task.done():
            logger.debug("Last waiter left; cancelling image fetch %s", request.url)
            request.task.cancel()

    def cancel_all(self) -> int:
        """Cancela todas las peticiones en vuelo y sus interesados. No toca la caché.

        Devuelve cuántos callbacks se quedaron sin entregar.
        """

        requests = list(self._in_flight.values())
        self._in_flight.clear()
        dropped = 0
        for request in requests:
            for handle in request.waiters:
                handle._state = _HandleState.CANCELLED
                handle._request = None
                dropped += 1
            request.waiters = []
            if request.task is not None and not request.task.done():
                request.task.cancel()
        self.stats["cancelled"] += dropped
        return dropped

    async def load(self, url: str | httpx.URL) -> PosterImage:
        """Versión awaitable de `fetch`.

        Lanza `ImageFetchError` en fallo. Si la tarea que espera se cancela, solo
        se retira su registro; la descarga sigue si hay otros esperando.
        """

        loop = asyncio.get_running_loop()
        future: asyncio.Future[ImageResult] = loop.create_future()

        def _resolve(result: ImageResult) -> None:
            if not future.done():
                future.set_result(result)

        handle = self.fetch(url, _resolve)
        try:
            result = await future
        except asyncio.CancelledError:
            handle.cancel()
            raise
        return result.unwrap()

    def get(self, url: str | httpx.URL) -> PosterImage | None:
        """Consulta síncrona de la caché, sin I/O."""

        try:
            return self._images.get(canonical_url(url))
        except ImageFetchError:
            return None

    def is_in_flight(self, url: str | httpx.URL) -> bool:
        try:
            return canonical_url(url) in self._in_flight
        except ImageFetchError:
            return False

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, (str, httpx.URL)):
            return False
        return self.get(url) is not None

    def __len__(self) -> int:
        return len(self._images)

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    async def _run(self, request: _InFlightRequest) -> None:
        try:
            image = await self._download(request.url)
        except ImageFetchError as exc:
            self.stats["errors"] += 1
            logger.warning("Image fetch %s failed: %s", request.url, exc)
            result = ImageResult(url=request.url, error=exc)
        except Exception as exc:
            # Cualquier otro fallo también es terminal: la URL no puede quedar bloqueada.
            # CancelledError no es Exception y sigue su curso.
            self.stats["errors"] += 1
            logger.exception("Unexpected failure fetching image %s", request.url)
            error = ImageFetchError(ErrorKind.TRANSPORT, url=request.url, cause=exc)
            result = ImageResult(url=request.url, error=error)
        else:
            self._images[request.url] = image
            result = ImageResult(url=request.url, image=image)
        self._finish(request, result)

    async def _download(self, url: str) -> PosterImage:
        logger.debug("Fetching image %s", url)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise ImageFetchError(
                ErrorKind.TRANSPORT,
                describe_transport_error(exc),
                url=url,
                cause=exc,
            ) from exc

        if not response.is_success:
            raise ImageFetchError.from_status(response.status_code, url=url)
        if not response.content:
            raise ImageFetchError(ErrorKind.MISSING_DATA, url=url)

        try:
            return await asyncio.to_thread(self._decoder, url, response.content)
        except ImageFetchError:
            raise
        except Exception as exc:
            raise ImageFetchError(ErrorKind.DECODE, url=url, cause=exc) from exc

    def _finish(self, request: _InFlightRequest, result: ImageResult) -> None:
        # Se retira la entrada antes de entregar: un callback que vuelva a pedir
        # la misma URL tras un fallo debe lanzar una descarga nueva.
        if self._in_flight.get(request.url) is request:
            del self._in_flight[request.url]
        waiters, request.waiters = request.waiters, []
        for handle in waiters:
            self._deliver(handle, result)

    def _deliver(self, handle: FetchHandle, result: ImageResult) -> None:
        if handle._state is not _HandleState.PENDING:
            return
        handle._state = _HandleState.DELIVERED
        handle._request = None
        try:
            handle._callback(result)
        except Exception:
            logger.exception("Image callback for %s raised", result.url)

from abc import ABC, abstractmethod
from typing import Any


class AbstractChatClient(ABC):
	"""Interface for clients that relay OpenAI-style chat completions."""

	@abstractmethod
	async def create_completion(
		self,
		*,
		model: str,
		messages: list[dict[str, Any]],
		extra_body: dict[str, Any] | None = None,
		**params: Any,
	) -> dict[str, Any]:
		"""Run one chat completion and return the provider's JSON body.

		Args:
			model: Provider model name.
			messages: OpenAI-format chat messages, passed through untouched.
			extra_body: Provider-specific fields merged into the request body.
			**params: Sampling options (temperature, max_tokens, top_p, ...).

		Returns:
			dict[str, Any]: The completion object as returned by the provider.

		Raises:
			UpstreamAppError: If the provider rejects the request or is unreachable.
		"""
		...

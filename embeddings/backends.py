"""
Hugging Face implementations of the tokenizer and inference engine boundaries.

Heavy libraries (transformers, torch, sentence-transformers) are imported
lazily so the pipeline itself can be used and tested with any collaborator.
"""

import concurrent.futures
import inspect
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from shared.exceptions import ConfigurationError, InferenceTimeoutError

from .encoder import ATTENTION_MASK, INPUT_IDS, TOKEN_TYPE_IDS, InferenceEngine, TokenEncoding

logger = logging.getLogger(__name__)

MODEL_INPUTS = frozenset({INPUT_IDS, ATTENTION_MASK, TOKEN_TYPE_IDS})


def require_artifact(path: Optional[str], name: str) -> Path:
    """
    Resolve an artifact path, failing at construction time if it is missing.

    Raises:
        ConfigurationError: If path is unset or does not exist
    """
    if not path:
        raise ConfigurationError(f"{name} path is not configured")
    resolved = Path(path)
    if not resolved.exists():
        raise ConfigurationError(f"{name} not found: {resolved}")
    return resolved


class HuggingFaceTokenizer:
    """
    Adapter over a transformers tokenizer.

    Padding and truncation are disabled: the pipeline always sends exactly
    the real sequence length.
    """

    def __init__(self, tokenizer):
        """
        Args:
            tokenizer: A transformers PreTrainedTokenizer(Fast)
        """
        self._tokenizer = tokenizer

    @classmethod
    def from_file(cls, tokenizer_path: str) -> "HuggingFaceTokenizer":
        """Load from a tokenizer.json file or a pretrained tokenizer directory."""
        path = require_artifact(tokenizer_path, "Tokenizer")
        try:
            if path.is_dir():
                from transformers import AutoTokenizer

                tokenizer = AutoTokenizer.from_pretrained(str(path))
            else:
                from transformers import PreTrainedTokenizerFast

                tokenizer = PreTrainedTokenizerFast(tokenizer_file=str(path))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not load tokenizer from {path}: {e}") from e

        logger.info(f"Loaded tokenizer: {path}")
        return cls(tokenizer)

    def tokenize(self, text: str) -> List[str]:
        ids = self._tokenizer(text, add_special_tokens=True)["input_ids"]
        return self._tokenizer.convert_ids_to_tokens(ids)

    def encode(self, text: str) -> TokenEncoding:
        encoded = self._tokenizer(
            text,
            add_special_tokens=True,
            padding=False,
            truncation=False,
            return_attention_mask=True,
            return_token_type_ids=True,
        )
        ids = encoded["input_ids"]
        type_ids = encoded.get("token_type_ids") or [0] * len(ids)
        return TokenEncoding(ids=ids, attention_mask=encoded["attention_mask"], type_ids=type_ids)

    def detokenize(self, tokens: Sequence[str]) -> str:
        return self._tokenizer.convert_tokens_to_string(list(tokens))


class TransformerInferenceEngine:
    """
    Adapter over a transformers encoder model (BertModel and friends).

    Returns last_hidden_state as a [1, seq_len, hidden] float32 array.
    """

    def __init__(self, model, device: Optional[str] = None):
        self.model = model
        self.device = device
        if device is not None:
            self.model.to(device)
        self.model.eval()
        self._input_names = self._declared_inputs(model)

    @classmethod
    def from_pretrained(cls, model_path: str, device: Optional[str] = None) -> "TransformerInferenceEngine":
        """Load a model directory saved with save_pretrained."""
        path = require_artifact(model_path, "Model")
        try:
            from transformers import AutoModel

            logger.info(f"Loading embedding model: {path}")
            model = AutoModel.from_pretrained(str(path))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not load model from {path}: {e}") from e
        return cls(model, device=device)

    @staticmethod
    def _declared_inputs(model) -> Set[str]:
        parameters = inspect.signature(model.forward).parameters
        return set(MODEL_INPUTS.intersection(parameters))

    @property
    def input_names(self) -> Set[str]:
        return set(self._input_names)

    def run(self, inputs: Dict[str, np.ndarray]) -> np.ndarray:
        import torch

        tensors = {name: torch.from_numpy(array) for name, array in inputs.items()}
        if self.device is not None:
            tensors = {name: tensor.to(self.device) for name, tensor in tensors.items()}

        with torch.no_grad():
            outputs = self.model(**tensors)

        hidden = getattr(outputs, "last_hidden_state", None)
        if hidden is None:
            hidden = outputs[0]
        return hidden.detach().cpu().float().numpy()


class TimeoutInferenceEngine:
    """
    Puts a deadline on an inference engine.

    A running call cannot be interrupted: on timeout the caller gets
    InferenceTimeoutError while the worker thread finishes in the background.
    A call still waiting in the queue when it times out is cancelled and
    never reaches the engine.

    Usage:
        engine = TimeoutInferenceEngine(TransformerInferenceEngine(model), timeout=5.0)
    """

    def __init__(self, engine: InferenceEngine, timeout: float, max_workers: int = 2):
        if timeout <= 0:
            raise ConfigurationError(f"timeout must be greater than zero, but is: {timeout}")
        self.engine = engine
        self.timeout = timeout
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="inference"
        )

    @property
    def input_names(self) -> Set[str]:
        return self.engine.input_names

    def run(self, inputs: Dict[str, np.ndarray]) -> np.ndarray:
        future = self._executor.submit(self.engine.run, inputs)
        try:
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning(f"Inference exceeded {self.timeout}s timeout")
            raise InferenceTimeoutError(
                f"Inference did not finish within {self.timeout}s", timeout=self.timeout
            )

    def close(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


def load_sentence_transformer(
    model_name: str, device: Optional[str] = None
) -> Tuple[HuggingFaceTokenizer, TransformerInferenceEngine]:
    """
    Tokenizer and engine from a sentence-transformers model.

    Only the first (transformer) module is used; pooling and normalization
    are done by the encoding pipeline.
    """
    from sentence_transformers import SentenceTransformer

    logger.info(f"Loading embedding model: {model_name}")
    try:
        model = SentenceTransformer(model_name, device=device)
    except OSError as e:
        raise ConfigurationError(f"Could not load model {model_name}: {e}") from e

    transformer = model[0]
    engine = TransformerInferenceEngine(transformer.auto_model, device=str(model.device))
    return HuggingFaceTokenizer(model.tokenizer), engine

"""
Colaborador de inferencia: modelo de Valencia-Activación.

La red neuronal se trata como una caja negra detrás de una interfaz mínima:

    infer(tensor) -> InferenceOutput(valence, arousal, expression_scores)

Implementaciones:
    - TorchEmotionModel: carga un modelo TorchScript (o un nn.Module
      serializado) y ejecuta el forward pass con PyTorch.
    - CallableEmotionModel: adapta cualquier función con el mismo contrato
      (útil para stubs en tests o para runtimes externos).

Cualquier fallo durante la inferencia se propaga como InferenceError. Nunca
se devuelve una lectura neutral por defecto, ya que se confundiría con una
emoción válida.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Tuple, Union

import numpy as np
import torch
import torch.nn as nn

from ..exceptions import InferenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferenceOutput:
    """Salida cruda del modelo (antes de offsets)."""
    valence: float
    arousal: float
    expression_scores: Optional[Tuple[float, ...]] = None


def _as_float_array(value, name: str) -> np.ndarray:
    if isinstance(value, torch.Tensor):
        value = value.detach().cpu().numpy()
    try:
        return np.asarray(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InferenceError(f"'{name}' no es numérico: {value!r}") from e


def _scalar(value, name: str) -> float:
    array = _as_float_array(value, name)
    if array.size != 1:
        raise InferenceError(f"'{name}' debe ser un escalar, recibido tamaño {array.size}")
    result = float(array[0])
    if not np.isfinite(result):
        raise InferenceError(f"'{name}' no es finito: {result}")
    return result


def _scores(value) -> Optional[Tuple[float, ...]]:
    if value is None:
        return None
    array = _as_float_array(value, 'expression')
    return tuple(float(v) for v in array)


def decode_output(raw) -> InferenceOutput:
    """
    Interpreta la salida del modelo.

    Formatos aceptados:
        - Tensor/array con 2 elementos: [valence, arousal]
        - Mapping con claves 'valence', 'arousal' y opcional 'expression'
        - Secuencia (valence, arousal) o (valence, arousal, expression)

    Raises:
        InferenceError: Si la salida no encaja en ningún formato
    """
    if isinstance(raw, InferenceOutput):
        return raw

    if isinstance(raw, Mapping):
        if 'valence' not in raw or 'arousal' not in raw:
            raise InferenceError(
                f"La salida del modelo no contiene 'valence'/'arousal': {list(raw)}"
            )
        return InferenceOutput(
            valence=_scalar(raw['valence'], 'valence'),
            arousal=_scalar(raw['arousal'], 'arousal'),
            expression_scores=_scores(raw.get('expression')),
        )

    if isinstance(raw, (torch.Tensor, np.ndarray)):
        flat = _as_float_array(raw, 'output')
        if flat.size != 2:
            raise InferenceError(
                f"Se esperaba una salida de 2 elementos [valence, arousal], forma: {tuple(raw.shape)}"
            )
        return InferenceOutput(
            valence=_scalar(flat[0], 'valence'),
            arousal=_scalar(flat[1], 'arousal'),
        )

    if isinstance(raw, (tuple, list)) and len(raw) in (2, 3):
        expression = raw[2] if len(raw) == 3 else None
        return InferenceOutput(
            valence=_scalar(raw[0], 'valence'),
            arousal=_scalar(raw[1], 'arousal'),
            expression_scores=_scores(expression),
        )

    raise InferenceError(f"Salida del modelo no interpretable: {type(raw).__name__}")


class EmotionModel(ABC):
    """
    Interfaz base para modelos de Valencia-Activación.

    Los modelos adquieren sus recursos al construirse y los liberan en
    close(). Se pueden usar como context manager.
    """

    @abstractmethod
    def infer(self, tensor: np.ndarray) -> InferenceOutput:
        """
        Ejecuta el forward pass sobre un tensor (1, H, W, 3).

        Raises:
            InferenceError: Si la inferencia falla
        """
        pass

    def close(self) -> None:
        """Libera los recursos del modelo."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class CallableEmotionModel(EmotionModel):
    """
    Adapta una función `fn(tensor)` al contrato de EmotionModel.

    Example:
        >>> model = CallableEmotionModel(lambda t: (0.2, 0.3))
        >>> model.infer(tensor).valence
        0.2
    """

    def __init__(self, fn: Callable, name: str = "callable"):
        self.fn = fn
        self.name = name
        self._closed = False

    def infer(self, tensor: np.ndarray) -> InferenceOutput:
        if self._closed:
            raise InferenceError(f"Modelo '{self.name}' ya cerrado")
        try:
            raw = self.fn(tensor)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"Fallo en el modelo '{self.name}': {e}") from e
        return decode_output(raw)

    def close(self) -> None:
        self._closed = True


class TorchEmotionModel(EmotionModel):
    """
    Modelo de Valencia-Activación ejecutado con PyTorch.

    Attributes:
        device (torch.device): Dispositivo de ejecución
        input_layout (str): 'nhwc' pasa el tensor tal cual; 'nchw' lo transpone
        model_path (Path | None): Ruta del modelo cargado
    """

    def __init__(
        self,
        model_path: Optional[Union[str, Path]] = None,
        module: Optional[nn.Module] = None,
        device: str = "cpu",
        input_layout: str = "nhwc"
    ):
        """
        Carga el modelo.

        Args:
            model_path: Ruta a un modelo TorchScript (.pt) o nn.Module serializado
            module: Módulo ya construido (alternativa a model_path)
            device (str): 'cpu', 'cuda', 'cuda:0'...
            input_layout (str): Layout que espera la red ('nhwc' o 'nchw')

        Raises:
            ValueError: Si no se indica ni ruta ni módulo, o el layout es inválido
            FileNotFoundError: Si la ruta no existe
            RuntimeError: Si el archivo no contiene un modelo cargable
        """
        if input_layout not in ('nhwc', 'nchw'):
            raise ValueError(f"input_layout inválido: {input_layout}")
        if model_path is None and module is None:
            raise ValueError("Se requiere model_path o module")

        self.device = torch.device(device)
        self.input_layout = input_layout
        self.model_path = Path(model_path) if model_path is not None else None

        if module is None:
            module = self._load(self.model_path)

        self.module: Optional[nn.Module] = module.to(self.device)
        self.module.eval()

        logger.info(
            f"Modelo VA cargado ({self.model_path or type(module).__name__}) "
            f"en {self.device}, layout {self.input_layout}"
        )

    def _load(self, path: Path) -> nn.Module:
        if not path.exists():
            raise FileNotFoundError(f"Modelo no encontrado: {path}")

        try:
            return torch.jit.load(str(path), map_location=self.device)
        except RuntimeError as e:
            logger.debug(f"No es TorchScript ({e}), probando nn.Module serializado")

        obj = torch.load(str(path), map_location=self.device, weights_only=False)
        if not isinstance(obj, nn.Module):
            raise RuntimeError(
                f"{path} no contiene un modelo completo (tipo {type(obj).__name__}). "
                "Exporta el modelo con torch.jit.save o torch.save(model)."
            )
        return obj

    def _to_input(self, tensor: np.ndarray) -> torch.Tensor:
        # torch.tensor copia: el tensor de entrada es de solo lectura
        x = torch.tensor(np.asarray(tensor, dtype=np.float32), device=self.device)
        if self.input_layout == 'nchw':
            x = x.permute(0, 3, 1, 2).contiguous()
        return x

    def infer(self, tensor: np.ndarray) -> InferenceOutput:
        if self.module is None:
            raise InferenceError("El modelo ya fue liberado (close())")

        try:
            with torch.inference_mode():
                raw = self.module(self._to_input(tensor))
        except Exception as e:
            raise InferenceError(f"Fallo en el forward pass: {e}") from e

        return decode_output(raw)

    def close(self) -> None:
        if self.module is None:
            return
        self.module = None
        if self.device.type == 'cuda':
            torch.cuda.empty_cache()
        logger.info("Modelo VA liberado")


def load_emotion_model(config) -> TorchEmotionModel:
    """
    Construye el modelo torch descrito en un AnalyzerConfig.

    Raises:
        FileNotFoundError: Si config.model_path no está definido o no existe
    """
    if not config.model_path:
        raise FileNotFoundError(
            "No hay model_path configurado. Indica la ruta del modelo TorchScript."
        )
    return TorchEmotionModel(
        model_path=config.model_path,
        device=config.device,
        input_layout=config.input_layout,
    )

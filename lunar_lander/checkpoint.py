"""
Checkpoint load/save.

Responsibilities:
- Save the champion genome with the network shape and input channels it expects
- Save generation, score and a free-text note
- Refuse to load into a network of a different shape
"""
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import torch

from . import config as C


def save_checkpoint(genome, widths, channels, generation, score, note="", path: Path = C.MODEL_PATH):
    ckpt = {
        "genome": genome.detach().clone(),
        "widths": list(widths),
        "channels": asdict(channels),
        "generation": int(generation),
        "score": int(score),
        "note": note,
    }
    torch.save(ckpt, path)


def load_checkpoint(policy, path: Path = C.MODEL_PATH) -> Optional[dict]:
    path = Path(path)
    if not path.exists():
        return None

    try:
        ckpt = torch.load(path, map_location="cpu")
        if tuple(ckpt["widths"]) != tuple(policy.widths):
            raise ValueError(f"checkpoint network is {tuple(ckpt['widths'])}, expected {tuple(policy.widths)}")
        policy.load_genome(ckpt["genome"])
        return ckpt
    except Exception as ex:
        print(f"⚠️ Failed to load checkpoint from {path}: {ex}")
        return None

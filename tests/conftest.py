"""Shared fixtures: a small aligned corpus and the model trained from it."""

import os
import tempfile

import pytest

from graphone.corpus import build_model

CORPUS_LINES = [
    "aa",
    "ae",
    "c-a-t k 0 ae 1 t 2 //",
    "c-a-r k 0 aa 1 r 2 //",
    "b-a-t b 0 ae 1 t 2 //",
    "m-a-k-e m 0 ey 1 k 2 //",
    "BREAK!",
    "d-o-g d 0 ao 1 g 2 //",
]


@pytest.fixture
def corpus_lines():
    return list(CORPUS_LINES)


@pytest.fixture
def model():
    return build_model(CORPUS_LINES)


@pytest.fixture
def corpus_file():
    with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
        f.write("\n".join(CORPUS_LINES) + "\n")
        temp_file = f.name
    yield temp_file
    os.unlink(temp_file)

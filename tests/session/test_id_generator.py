# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the pooled session id generator."""

from __future__ import annotations

import re
import threading

import pytest

from pysession.session.id_generator import DEFAULT_ID_BYTES, DefaultIdGenerator, IdGenerator, RandomBytePool

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestDefaultIdGenerator:
    def test_ids_are_32_url_safe_characters(self):
        generate = DefaultIdGenerator()
        session_id = generate()
        assert len(session_id) == 32
        assert URL_SAFE.match(session_id)
        assert "=" not in session_id

    def test_ids_are_unique(self):
        generate = DefaultIdGenerator()
        ids = {generate() for _ in range(2000)}
        assert len(ids) == 2000

    def test_request_argument_is_ignored(self):
        generate = DefaultIdGenerator()
        assert len(generate(object())) == 32

    def test_satisfies_protocol(self):
        assert isinstance(DefaultIdGenerator(), IdGenerator)

    def test_custom_size(self):
        generate = DefaultIdGenerator(size=12)
        assert len(generate()) == 16


class TestRandomBytePool:
    def test_take_returns_requested_size(self):
        pool = RandomBytePool(batch_size=64)
        assert len(pool.take(DEFAULT_ID_BYTES)) == DEFAULT_ID_BYTES

    def test_refills_in_batches(self):
        pool = RandomBytePool(batch_size=48)
        pool.take(24)
        assert pool.available == 24
        pool.take(24)
        assert pool.available == 0
        pool.take(24)
        assert pool.available == 24

    def test_request_larger_than_batch(self):
        pool = RandomBytePool(batch_size=8)
        assert len(pool.take(32)) == 32

    def test_consecutive_chunks_differ(self):
        pool = RandomBytePool(batch_size=DEFAULT_ID_BYTES * 4)
        assert pool.take(DEFAULT_ID_BYTES) != pool.take(DEFAULT_ID_BYTES)

    def test_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            RandomBytePool(batch_size=0)

    def test_shared_between_threads(self):
        pool = RandomBytePool(batch_size=DEFAULT_ID_BYTES * 3)
        generate = DefaultIdGenerator(pool=pool)
        results: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(200):
                value = generate()
                with lock:
                    results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 800
        assert len(set(results)) == 800

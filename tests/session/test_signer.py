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
"""Tests for session id signing and secret rotation."""

from __future__ import annotations

import pytest

from pysession.session.signer import CookieSigner, SessionSigner, build_signer, is_signer_object, sign, unsign

SECRET = "cNaoPYAwF60HZJzkcNaoPYAwF60HZJzk"
OLD_SECRET = "ayYQF5kbLqoMDomyayYQF5kbLqoMDomy"


def _tamper(token: str) -> str:
    value, signature = token.rsplit(".", 1)
    first = "B" if signature[0] == "A" else "A"
    return f"{value}.{first}{signature[1:]}"


class TestSignAndUnsign:
    def test_token_format(self):
        token = sign("abc", SECRET)
        value, signature = token.split(".")
        assert value == "abc"
        assert len(signature) == 43

    def test_unsign_returns_value(self):
        assert unsign(sign("abc", SECRET), [SECRET]) == "abc"

    def test_tampered_signature_returns_none(self):
        assert unsign(_tamper(sign("abc", SECRET)), [SECRET]) is None

    def test_tampered_value_returns_none(self):
        token = sign("abc", SECRET)
        assert unsign("abd" + token[3:], [SECRET]) is None

    def test_garbage_returns_none(self):
        assert unsign("no-separator-here", [SECRET]) is None
        assert unsign("", [SECRET]) is None

    def test_unknown_secret_returns_none(self):
        assert unsign(sign("abc", OLD_SECRET), [SECRET]) is None

    def test_rotation_accepts_any_configured_secret(self):
        token = sign("abc", OLD_SECRET)
        assert unsign(token, [SECRET, OLD_SECRET]) == "abc"


class TestCookieSigner:
    def test_signs_with_first_secret(self):
        signer = CookieSigner([SECRET, OLD_SECRET])
        assert signer.sign("abc") == sign("abc", SECRET)

    def test_single_string_secret(self):
        signer = CookieSigner(SECRET)
        assert signer.unsign(signer.sign("abc")) == "abc"

    def test_secret_list_is_read_on_every_call(self):
        secrets = [OLD_SECRET]
        signer = CookieSigner(secrets)
        old_token = signer.sign("abc")

        secrets.insert(0, SECRET)

        assert signer.sign("abc") == sign("abc", SECRET)
        assert signer.unsign(old_token) == "abc"

        secrets.remove(OLD_SECRET)
        assert signer.unsign(old_token) is None

    def test_satisfies_protocol(self):
        assert isinstance(CookieSigner(SECRET), SessionSigner)


class _ReversingSigner:
    def sign(self, value):
        return value[::-1] + "!"

    def unsign(self, token):
        if not token.endswith("!"):
            return False
        return token[:-1][::-1]


class TestBuildSigner:
    def test_string_and_list_build_cookie_signer(self):
        assert isinstance(build_signer(SECRET), CookieSigner)
        assert isinstance(build_signer([SECRET]), CookieSigner)

    def test_custom_signer_object(self):
        signer = build_signer(_ReversingSigner())
        assert signer.sign("abc") == "cba!"
        assert signer.unsign("cba!") == "abc"

    def test_custom_signer_false_means_invalid(self):
        signer = build_signer(_ReversingSigner())
        assert signer.unsign("cba") is None

    def test_is_signer_object(self):
        assert is_signer_object(_ReversingSigner())
        assert not is_signer_object(SECRET)
        assert not is_signer_object(object())

    @pytest.mark.parametrize("secret", [SECRET, [SECRET, OLD_SECRET]])
    def test_round_trip(self, secret):
        signer = build_signer(secret)
        assert signer.unsign(signer.sign("session-id")) == "session-id"

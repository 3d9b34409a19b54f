"""
Tests unitaires pour l'empreinte canonique des requetes.
"""

from cinereco.adapters.api.request import ApiRequest, make_fingerprint, normalize_params


class TestNormalizeParams:
    """Tests pour normalize_params."""

    def test_sorted_and_stringified(self) -> None:
        assert normalize_params({"page": 2, "include_adult": False, "a": None}) == (
            ("include_adult", "false"),
            ("page", "2"),
        )

    def test_sequences_joined(self) -> None:
        assert normalize_params({"with_genres": [28, 12]}) == (("with_genres", "28,12"),)
        assert normalize_params({"with_genres": {28, 12}}) == (("with_genres", "12,28"),)

    def test_empty(self) -> None:
        assert normalize_params(None) == ()
        assert normalize_params({}) == ()


class TestFingerprint:
    """Tests pour make_fingerprint et ApiRequest.fingerprint."""

    def test_parameter_order_is_irrelevant(self) -> None:
        first = make_fingerprint("GET", "/discover/movie", {"page": 1, "sort_by": "x"})
        second = make_fingerprint("get", "/discover/movie", {"sort_by": "x", "page": 1})
        assert first == second == "GET /discover/movie?page=1&sort_by=x"

    def test_credentials_excluded(self) -> None:
        with_key = make_fingerprint("GET", "/genre/movie/list", {"api_key": "secret"})
        with_session = make_fingerprint(
            "GET", "/account/1/rated/movies", {"session_id": "s", "page": 1}
        )

        assert with_key == "GET /genre/movie/list"
        assert "secret" not in with_key
        assert with_session == "GET /account/1/rated/movies?page=1"

    def test_distinct_values_distinct_fingerprints(self) -> None:
        assert make_fingerprint("GET", "/x", {"page": 1}) != make_fingerprint(
            "GET", "/x", {"page": 2}
        )

    def test_method_is_part_of_fingerprint(self) -> None:
        assert make_fingerprint("GET", "/movie/1/rating") != make_fingerprint(
            "POST", "/movie/1/rating"
        )


class TestApiRequest:
    """Tests pour ApiRequest."""

    def test_get(self) -> None:
        request = ApiRequest.get("/movie/550", {"language": "fr-FR"})

        assert request.method == "GET"
        assert request.query_params == {"language": "fr-FR"}
        assert request.fingerprint == "GET /movie/550?language=fr-FR"
        assert request.body is None

    def test_post_keeps_body(self) -> None:
        request = ApiRequest.post("/movie/550/rating", {"session_id": "s"}, body={"value": 8})

        assert request.method == "POST"
        assert request.body == {"value": 8}
        assert request.query_params == {"session_id": "s"}
        assert request.fingerprint == "POST /movie/550/rating"

    def test_delete(self) -> None:
        assert ApiRequest.delete("/movie/550/rating").method == "DELETE"

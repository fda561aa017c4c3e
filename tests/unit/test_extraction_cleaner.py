"""Tests for page copy extraction."""

from worker.extraction.cleaner import extract_page_copy


class TestExtractPageCopy:
    """Tests for extract_page_copy function."""

    def test_includes_title_and_meta_description(self) -> None:
        """Title and meta description lead the copy."""
        html = """
        <html>
        <head>
            <title>Clínica Ortopédica</title>
            <meta name="description" content="Tratamento de joelho">
        </head>
        <body><p>Agende sua consulta</p></body>
        </html>
        """
        text = extract_page_copy(html)

        assert text.startswith("Clínica Ortopédica. Tratamento de joelho")
        assert "Agende sua consulta" in text

    def test_removes_scripts_and_styles(self) -> None:
        """Script and style content never reaches the copy."""
        html = """
        <html>
        <head><style>.x { color: red; }</style></head>
        <body><p>Content</p><script>alert('x');</script></body>
        </html>
        """
        text = extract_page_copy(html)

        assert "alert" not in text
        assert "color: red" not in text
        assert "Content" in text

    def test_removes_navigation_and_footer(self) -> None:
        """Boilerplate regions are dropped."""
        html = """
        <html><body>
            <nav>Home | Sobre | Contato</nav>
            <main><p>Especialista em quadril</p></main>
            <aside>Links úteis</aside>
            <footer>Todos os direitos reservados</footer>
        </body></html>
        """
        text = extract_page_copy(html)

        assert text == "Especialista em quadril"

    def test_removes_comments(self) -> None:
        """HTML comments are not copy."""
        html = "<html><body><!-- hidden --><p>Visible</p></body></html>"

        assert extract_page_copy(html) == "Visible"

    def test_normalizes_whitespace(self) -> None:
        """Runs of whitespace collapse to single spaces."""
        html = "<html><body><p>Muito\n\n   espaço\t aqui</p></body></html>"

        assert extract_page_copy(html) == "Muito espaço aqui"

    def test_truncates_to_max_chars(self) -> None:
        """Output is bounded."""
        html = f"<html><body><p>{'a' * 100}</p></body></html>"

        assert len(extract_page_copy(html, max_chars=10)) == 10

    def test_empty_page(self) -> None:
        """A page with no readable text yields an empty string."""
        html = "<html><body><script>var x = 1;</script></body></html>"

        assert extract_page_copy(html) == ""

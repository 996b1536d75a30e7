from modification_service.patching.routing import (
    import_line_for,
    import_path_for,
    insert_route,
    kebab_case,
    route_line_for,
    route_path_for,
    validate_route_update,
)
from test_helpers import APP_TSX, HOME_TSX

ABOUT_IMPORT = "import About from './pages/About';"
ABOUT_ROUTE = '<Route path="/about" element={<About />} />'


def test_route_and_import_lines():
    assert kebab_case("ContactUs") == "contact-us"
    assert route_path_for("ContactUs") == "/contact-us"
    assert import_path_for("src/App.tsx", "src/pages/About.tsx") == "./pages/About"
    assert import_path_for("src/app/App.tsx", "src/pages/About.tsx") == "../pages/About"
    assert import_line_for("About", "./pages/About") == ABOUT_IMPORT
    assert route_line_for("About", "/about") == ABOUT_ROUTE


def test_insert_route_adds_one_route_and_import():
    updated = insert_route(APP_TSX, ABOUT_IMPORT, ABOUT_ROUTE)

    lines = updated.split("\n")
    assert lines[4] == ABOUT_IMPORT
    closing = lines.index("      </Routes>")
    assert lines[closing - 1] == "        " + ABOUT_ROUTE
    assert validate_route_update(APP_TSX, updated, "About")


def test_insert_route_is_skipped_without_routes_block():
    assert insert_route(HOME_TSX, ABOUT_IMPORT, ABOUT_ROUTE) is None


def test_validate_route_update_rejections():
    updated = insert_route(APP_TSX, ABOUT_IMPORT, ABOUT_ROUTE)

    assert not validate_route_update(APP_TSX, APP_TSX, "About")
    assert not validate_route_update(APP_TSX, updated.replace(ABOUT_IMPORT + "\n", ""), "About")
    replaced = updated.replace('<Route path="/" element={<Home />} />', '<Route path="/home" element={<Home />} />')
    assert not validate_route_update(APP_TSX, replaced, "About")
    doubled = updated.replace(ABOUT_ROUTE, ABOUT_ROUTE + "\n        " + ABOUT_ROUTE)
    assert not validate_route_update(APP_TSX, doubled, "About")

from modification_service.patching.snapshot import primary_name_of, repair, take_snapshot, validate
from test_helpers import APP_TSX, SIGNUP_TSX


def test_snapshot_records_imports_exports_and_primary_name():
    snapshot = take_snapshot(APP_TSX, "tsx")

    assert [i.text for i in snapshot.imports] == [
        "import React from 'react';",
        "import { BrowserRouter, Routes, Route } from 'react-router-dom';",
        "import Home from './pages/Home';",
        "import Signup from './components/Signup';",
    ]
    assert [e.text for e in snapshot.exports] == ["export default App;"]
    assert snapshot.primary_name == "App"
    assert snapshot.parsed is True


def test_multiline_import_is_one_statement():
    content = "import {\n  useState,\n  useEffect,\n} from 'react';\n\nexport const Counter = () => null;\n"

    snapshot = take_snapshot(content, "tsx")

    assert len(snapshot.imports) == 1
    assert snapshot.imports[0].lines == ("import {", "useState,", "useEffect,", "} from 'react';")
    assert snapshot.primary_name == "Counter"


def test_unchanged_content_validates_and_repair_is_identity():
    snapshot = take_snapshot(SIGNUP_TSX, "tsx")

    assert validate(snapshot, SIGNUP_TSX).ok
    assert repair(snapshot, SIGNUP_TSX) == SIGNUP_TSX


def test_reindented_lines_are_not_violations():
    snapshot = take_snapshot(SIGNUP_TSX, "tsx")
    reindented = SIGNUP_TSX.replace("import React from 'react';", "   import React from 'react';   ")

    assert validate(snapshot, reindented).ok


def test_removed_import_is_reported_and_repaired_in_place():
    snapshot = take_snapshot(SIGNUP_TSX, "tsx")
    candidate = SIGNUP_TSX.replace("import React from 'react';\n", "", 1)

    report = validate(snapshot, candidate)
    assert not report.ok
    assert "1 import(s) removed" in report.describe()

    repaired = repair(snapshot, candidate)
    assert repaired is not None
    assert repaired.split("\n")[0] == "import React from 'react';"
    assert validate(snapshot, repaired).ok


def test_removed_export_line_is_restored_after_its_anchor():
    snapshot = take_snapshot(APP_TSX, "tsx")
    candidate = APP_TSX.replace("export default App;\n", "")

    repaired = repair(snapshot, candidate)

    assert repaired is not None
    assert repaired.endswith("}\n\nexport default App;\n")
    assert validate(snapshot, repaired).ok


def test_renamed_primary_declaration_cannot_be_repaired():
    snapshot = take_snapshot(SIGNUP_TSX, "tsx")
    candidate = SIGNUP_TSX.replace("Signup", "Register")

    report = validate(snapshot, candidate)

    assert report.primary_name_missing
    assert repair(snapshot, candidate) is None


def test_content_that_stops_parsing_is_rejected():
    snapshot = take_snapshot(SIGNUP_TSX, "tsx")
    candidate = SIGNUP_TSX.replace("    </form>\n", "")

    report = validate(snapshot, candidate)

    assert report.parse_failed
    assert repair(snapshot, candidate) is None
    assert validate(snapshot, candidate, require_parse=False).ok


def test_parse_is_not_required_when_original_did_not_parse():
    broken = "import React from 'react';\nexport default function Broken() {\n  return (<div>\n}\n"
    snapshot = take_snapshot(broken, "tsx")

    assert snapshot.parsed is False
    assert validate(snapshot, broken + "// note\n").ok


def test_primary_name_detection():
    assert primary_name_of("export default function Home() {}") == "Home"
    assert primary_name_of("class Widget extends React.Component {}\nexport default Widget;") == "Widget"
    assert primary_name_of("const Card = () => null;\nexport default Card;") == "Card"
    assert primary_name_of("body { margin: 0; }") is None


NESTED_CLOSERS_TSX = """import React from 'react';

const Badge = () => {
  const style = {
    color: 'red',
  };
  return <b style={style}>new</b>;
};
export const BADGE_SIZE = 4;

const Card = () => {
  const inner = {
    margin: 0,
  };
  return <div style={inner}><Badge /></div>;
};

export default Card;
"""


def test_trailing_export_goes_back_to_the_end_not_into_an_earlier_body():
    snapshot = take_snapshot(NESTED_CLOSERS_TSX, "tsx")
    candidate = NESTED_CLOSERS_TSX.replace("\nexport default Card;\n", "\n")

    repaired = repair(snapshot, candidate)

    assert repaired is not None
    assert repaired.rstrip("\n").endswith("};\n\nexport default Card;")
    assert repaired.count("export default Card;") == 1
    assert "};\nexport default Card;\n  return" not in repaired


def test_missing_export_uses_the_closer_followed_by_its_original_successor():
    snapshot = take_snapshot(NESTED_CLOSERS_TSX, "tsx")
    candidate = NESTED_CLOSERS_TSX.replace("export const BADGE_SIZE = 4;\n", "")

    repaired = repair(snapshot, candidate)

    assert repaired is not None
    assert repaired == NESTED_CLOSERS_TSX

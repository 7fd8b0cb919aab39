import io
import random
from collections import Counter

import pytest

from befunge_vm import BefungeVM, trunc_div, trunc_mod, wrap32
from coord import Coord, Direction
from grid import FILLER, FatalError, SilentBounds, StrictBounds

HELLO = """\
>25*"!dlrow ,olleH":v
                 v:,_@
                 >  ^
"""


def _vm(src, inp=b"", **kwargs):
    return BefungeVM.from_source(src, inp=io.BytesIO(inp), out=io.StringIO(), **kwargs)


def _cycles(vm, n):
    for _ in range(n):
        vm.cycle()
    return vm.S


def _run(vm, limit=10_000):
    with pytest.raises(SystemExit) as exc:
        vm.run(max_cycles=limit)
    return exc.value.code


# ====== Pushing and arithmetic ======

def test_digits_push_in_program_order():
    vm = _vm("0123456789")
    assert _cycles(vm, 10) == list(range(10))


def test_subtract_is_second_minus_top():
    assert _cycles(_vm("52-"), 3) == [3]
    assert _cycles(_vm("25-"), 3) == [-3]


def test_add_then_subtract_restores_value():
    assert _cycles(_vm("34+4-"), 5) == [3]


def test_multiply_and_compare():
    assert _cycles(_vm("67*"), 3) == [42]
    assert _cycles(_vm("52`"), 3) == [1]
    assert _cycles(_vm("25`"), 3) == [0]
    assert _cycles(_vm("55`"), 3) == [0]


def test_not():
    assert _cycles(_vm("0!"), 2) == [1]
    assert _cycles(_vm("7!"), 2) == [0]
    assert _cycles(_vm("!"), 1) == [1]


def test_division_truncates_towards_zero():
    # 0 7 - gives -7
    assert _cycles(_vm("07-2/"), 5) == [-3]
    assert _cycles(_vm("07-2%"), 5) == [-1]
    assert _cycles(_vm("72/"), 3) == [3]
    assert _cycles(_vm("702-%"), 5) == [1]


def test_truncating_helpers_match_host_for_positive_operands():
    for b in range(0, 30):
        for a in range(1, 7):
            assert trunc_div(b, a) == b // a
            assert trunc_mod(b, a) == b % a
    assert trunc_div(7, -2) == -3
    assert trunc_mod(7, -2) == 1


def test_arithmetic_wraps_to_32_bits():
    assert wrap32(2 ** 31) == -(2 ** 31)
    assert wrap32(-(2 ** 31) - 1) == 2 ** 31 - 1
    vm = _vm("*")
    vm.S = [2 ** 19, 2 ** 12]
    assert _cycles(vm, 1) == [-(2 ** 31)]


@pytest.mark.parametrize("src", ["50/", "50%"])
def test_division_by_zero_is_fatal(src):
    # strengthened: the host language would otherwise decide
    vm = _vm(src)
    _cycles(vm, 2)
    with pytest.raises(FatalError):
        vm.cycle()


def test_missing_operands_default_to_zero():
    assert _cycles(_vm("+"), 1) == [0]
    assert _cycles(_vm("5-"), 2) == [-5]
    assert _cycles(_vm("3`"), 2) == [0]


# ====== Stack manipulation ======

def test_duplicate_on_empty_pushes_two_zeros():
    assert _cycles(_vm(":"), 1) == [0, 0]


def test_duplicate_and_discard():
    assert _cycles(_vm("4:"), 2) == [4, 4]
    assert _cycles(_vm("45$"), 3) == [4]
    assert _cycles(_vm("$"), 1) == []


def test_swap():
    assert _cycles(_vm("12\\"), 3) == [2, 1]
    assert _cycles(_vm("5\\"), 2) == [5, 0]
    assert _cycles(_vm("\\"), 1) == [0, 0]


# ====== Flow control ======

def test_arrows_set_direction():
    vm = _vm(">v\n^<")
    _cycles(vm, 2)
    assert vm.dir is Direction.DOWN
    assert vm.ptr == Coord(1, 1)
    _cycles(vm, 2)
    assert vm.dir is Direction.UP
    assert vm.ptr == Coord(0, 0)


@pytest.mark.parametrize("src, expected", [
    ("0_", Direction.RIGHT),
    ("1_", Direction.LEFT),
    ("_", Direction.RIGHT),
    ("0|", Direction.DOWN),
    ("3|", Direction.UP),
])
def test_branches_pop_and_choose_direction(src, expected):
    vm = _vm(src)
    _cycles(vm, len(src))
    assert vm.dir is expected
    assert vm.S == []


def test_bridge_skips_next_cell():
    vm = _vm("#12")
    assert _cycles(vm, 2) == [2]
    assert vm.ptr == Coord(3, 0)


def test_string_mode_pushes_in_traversal_order():
    vm = _vm('"Hi"5')
    assert _cycles(vm, 1) == [ord("H"), ord("i")]
    assert vm.ptr == Coord(4, 0)


def test_string_mode_follows_direction():
    vm = _vm('v\n"\nA\nB\n"')
    assert _cycles(vm, 2) == [ord("A"), ord("B")]
    assert vm.ptr == Coord(0, 5)


def test_unterminated_string_is_fatal_even_when_silent():
    vm = _vm('"abc')
    assert isinstance(vm.grid.bounds, SilentBounds)
    with pytest.raises(FatalError):
        vm.cycle()


def test_unknown_opcodes_are_no_ops():
    vm = _vm("az ")
    _cycles(vm, 3)
    assert vm.S == []
    assert vm.ptr == Coord(3, 0)


def test_random_direction_is_roughly_uniform():
    vm = _vm("?", rng=random.Random(1234))
    seen = Counter()
    for _ in range(4000):
        vm.ptr = Coord(0, 0)
        vm.cycle()
        seen[vm.dir] += 1
    assert set(seen) == set(Direction)
    for d in Direction:
        assert 800 < seen[d] < 1200


# ====== Self-modifying code ======

def test_put_then_get_far_from_pointer():
    src = "88*91+3p91+3g\n\n\n" + "." * 20
    vm = _vm(src)
    _cycles(vm, 8)
    assert vm.grid[Coord(10, 3)] == 64
    assert _cycles(vm, 5) == [64]


def test_put_changes_future_fetches():
    # writes '@' (64) into cell (6, 0), which then quits the program
    vm = _vm("88*60p 5")
    assert _run(vm) == 0
    assert vm.S == []


@pytest.mark.parametrize("src, n", [("12p", 2), ("1g", 1), ("p", 0), ("g", 0)])
def test_put_get_need_operands(src, n):
    vm = _vm(src)
    _cycles(vm, n)
    with pytest.raises(FatalError):
        vm.cycle()


def test_get_outside_grid_reads_filler_when_silent():
    vm = _vm("99*9g")
    assert _cycles(vm, 5) == [FILLER]


def test_put_outside_grid_is_dropped_when_silent():
    vm = _vm("5 99*9p")
    _cycles(vm, 7)
    assert vm.S == []
    assert vm.grid.height == 1


def test_put_get_outside_grid_is_fatal_when_strict():
    vm = _vm("5 99*9p", bounds=StrictBounds())
    _cycles(vm, 6)
    with pytest.raises(FatalError):
        vm.cycle()


# ====== Termination ======

def test_quit_exits_with_success():
    vm = _vm("1@2")
    assert _run(vm) == 0
    assert vm.S == [1]


def test_leaving_strict_grid_exits_with_failure(capsys):
    vm = _vm("<", bounds=StrictBounds())
    assert _run(vm) == 1
    assert vm.cycles == 1
    assert "ERR:" in capsys.readouterr().err


def test_coordinate_underflow_is_fatal_even_when_silent():
    # strengthened: moving left of column 0 neither wraps to the row's end
    # nor keeps walking through filler
    vm = _vm("<  @")
    assert isinstance(vm.grid.bounds, SilentBounds)
    vm.cycle()
    assert vm.ptr == Coord(-1, 0)
    with pytest.raises(FatalError):
        vm.cycle()
    assert vm.cycles == 1


@pytest.mark.parametrize("src, cycles", [("v", 1), ("^", 1), (">", 80)])
def test_running_off_any_edge_ends_the_run_when_silent(src, cycles):
    vm = _vm(src)
    assert _run(vm) == 1
    assert vm.cycles == cycles


def test_get_outside_grid_still_reads_filler_when_silent():
    vm = _vm("0 1-0 1-g")
    assert _cycles(vm, 9) == [FILLER]


def test_cycle_limit_is_fatal():
    vm = _vm("><")
    assert _run(vm, limit=50) == 1
    assert vm.cycles == 50


# ====== I/O ======

def test_print_integer_and_character():
    vm = _vm('52*."A",@')
    assert _run(vm) == 0
    assert vm.out.getvalue() == "10 A"


def test_print_on_empty_stack_prints_zero():
    vm = _vm(".@")
    _run(vm)
    assert vm.out.getvalue() == "0 "


def test_hello_world():
    vm = _vm(HELLO)
    assert _run(vm) == 0
    assert vm.out.getvalue() == "Hello, world!\n"


def test_read_char_pushes_zero_at_end_of_input():
    vm = _vm("~~~", inp=b"AB")
    assert _cycles(vm, 3) == [65, 66, 0]


def test_read_number_prompts_first():
    vm = _vm("&&", inp=b"7")
    assert _cycles(vm, 2) == [ord("7"), 0]
    assert vm.out.getvalue() == "Input a number: \n" * 2

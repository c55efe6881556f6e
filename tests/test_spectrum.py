"""Unit tests for the Spectrum value type.

Tests cover:
- Construction from sequences and text
- In-place arithmetic (mul, div, add)
- Validation against [0, 1]
- Scalar reduction and exact equality
"""

import pytest

from brdfkit.core.spectrum import Spectrum
from brdfkit.errors import InvalidParameterError, InvalidSpectrumError, MissingPropertyError


class TestSpectrumConstruction:
    """Tests for building Spectrum values."""

    def test_default_is_black(self):
        """Test a default Spectrum has all channels zero."""
        s = Spectrum()
        assert (s.r, s.g, s.b) == (0.0, 0.0, 0.0)

    def test_from_sequence(self):
        """Test building from a three element list."""
        s = Spectrum.from_sequence([0.1, 0.2, 0.3])
        assert s == Spectrum(0.1, 0.2, 0.3)

    def test_from_sequence_too_short_raises(self):
        """Test a two element list is a missing property."""
        with pytest.raises(MissingPropertyError):
            Spectrum.from_sequence([0.1, 0.2])

    def test_missing_property_is_key_error(self):
        """Test callers can catch MissingPropertyError as KeyError."""
        with pytest.raises(KeyError):
            Spectrum.from_sequence([])

    def test_from_sequence_non_numeric_raises(self):
        """Test non-numeric channels are rejected."""
        with pytest.raises(InvalidParameterError):
            Spectrum.from_sequence([0.1, "red", 0.3])

    def test_parse_round_trips_str(self):
        """Test parse() reads back the text form exactly."""
        s = Spectrum(0.1, 2.0 / 3.0, 0.9)
        assert Spectrum.parse(str(s)) == s

    def test_str_form(self):
        """Test the text form is comma separated channels."""
        assert str(Spectrum(0.5, 0.25, 1.0)) == "0.5,0.25,1.0"


class TestSpectrumArithmetic:
    """Tests for in-place arithmetic."""

    def test_mul_scalar(self):
        """Test multiplying every channel by a scalar."""
        s = Spectrum(0.1, 0.2, 0.4).mul(2.0)
        assert s == Spectrum(0.2, 0.4, 0.8)

    def test_div_scalar(self):
        """Test dividing every channel by a scalar."""
        s = Spectrum(0.2, 0.4, 0.8).div(2.0)
        assert s == Spectrum(0.1, 0.2, 0.4)

    def test_add_spectrum(self):
        """Test channel-wise addition."""
        s = Spectrum(0.1, 0.2, 0.3).add(Spectrum(0.5, 0.5, 0.5))
        assert s.r == pytest.approx(0.6)
        assert s.g == pytest.approx(0.7)
        assert s.b == pytest.approx(0.8)

    def test_add_scalar(self):
        """Test adding a scalar to every channel."""
        s = Spectrum(0.0, 1.0, 2.0).add(1.0)
        assert s == Spectrum(1.0, 2.0, 3.0)

    def test_operations_are_in_place(self):
        """Test arithmetic mutates and returns the same object."""
        s = Spectrum(1.0, 1.0, 1.0)
        assert s.mul(0.5) is s
        assert s == Spectrum(0.5, 0.5, 0.5)

    def test_copy_is_independent(self):
        """Test mutating a copy leaves the original untouched."""
        s = Spectrum(0.3, 0.3, 0.3)
        c = s.copy().mul(2.0)
        assert s == Spectrum(0.3, 0.3, 0.3)
        assert c == Spectrum(0.6, 0.6, 0.6)

    def test_no_clamping(self):
        """Test arithmetic can leave [0, 1] without error."""
        s = Spectrum(0.9, 0.9, 0.9).mul(3.0)
        assert s.r == pytest.approx(2.7)
        assert not s.is_valid()


class TestSpectrumValidation:
    """Tests for validation and reduction."""

    @pytest.mark.parametrize("channels", [(0, 0, 0), (1, 1, 1), (0.3, 0.6, 0.9)])
    def test_valid_range(self, channels):
        """Test values inside [0, 1] validate."""
        Spectrum(*channels).validate()

    @pytest.mark.parametrize("channels", [(1.2, 0.5, 0.5), (0.5, -0.01, 0.5), (0.5, 0.5, 7.0)])
    def test_invalid_range_raises(self, channels):
        """Test any channel outside [0, 1] is invalid."""
        with pytest.raises(InvalidSpectrumError):
            Spectrum(*channels).validate()

    def test_invalid_spectrum_is_value_error(self):
        """Test InvalidSpectrumError can be caught as ValueError."""
        with pytest.raises(ValueError):
            Spectrum(2.0, 0.0, 0.0).validate()

    def test_to_scalar_is_channel_mean(self):
        """Test to_scalar() averages the channels."""
        assert Spectrum(0.3, 0.6, 0.9).to_scalar() == pytest.approx(0.6)

    def test_equality_is_exact(self):
        """Test equality applies no tolerance."""
        assert Spectrum(0.1, 0.2, 0.3) != Spectrum(0.1, 0.2, 0.3 + 1e-15)

    def test_unhashable(self):
        """Test mutable spectra cannot be used as dict keys."""
        with pytest.raises(TypeError):
            hash(Spectrum())

    def test_to_list_and_array(self):
        """Test conversion helpers."""
        s = Spectrum(0.1, 0.2, 0.3)
        assert s.to_list() == [0.1, 0.2, 0.3]
        assert s.as_array().tolist() == [0.1, 0.2, 0.3]
        assert list(s) == [0.1, 0.2, 0.3]

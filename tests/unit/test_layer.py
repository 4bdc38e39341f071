import numpy as np
import pytest

from neuralcore.core import activations, losses
from neuralcore.core.errors import DimensionMismatch, TopologyError
from neuralcore.core.layer import Layer, Neuron
from neuralcore.core.matrix import Matrix
from neuralcore.core.mechanics import MechIndex, Mechanics
from neuralcore.core.operations import col_vector

SIGMOID_SE = Mechanics(activations.SIGMOID, losses.SQUARED_ERROR)


def _layer_with_params():
    layer = Layer(2, 2)
    layer.set_weights(Matrix([[1.0, 2.0], [3.0, 4.0]]))
    layer.set_biases([1.0, 1.0])
    return layer


def test_weight_and_bias_shapes():
    layer = Layer(3, 2)
    assert layer.weights.shape == (3, 2)
    assert layer.biases.shape == (3, 1)
    with pytest.raises(DimensionMismatch):
        layer.set_weights(Matrix.zeros(2, 3))
    with pytest.raises(DimensionMismatch):
        layer.set_biases([1.0, 2.0])


def test_preactivation_is_weights_times_input_plus_bias():
    layer = _layer_with_params()
    z = layer.preactivation(col_vector([1.0, 1.0]))
    np.testing.assert_allclose(z.to_array().ravel(), [4.0, 8.0])
    with pytest.raises(DimensionMismatch):
        layer.preactivation(col_vector([1.0, 1.0, 1.0]))


def test_per_neuron_mechanics_override():
    layer = _layer_with_params()
    layer.set_mechanics(MechIndex(1, SIGMOID_SE))
    out = layer.activations(col_vector([0.0, 0.0]))
    assert out.get(0) == pytest.approx(1.0)
    assert out.get(1) == pytest.approx(activations.sigmoid(1.0))
    assert layer.standard_mechanics.activation is activations.IDENTITY
    assert [m.activation.name for m in layer.actual_mechanics] == ["identity", "sigmoid"]


def test_dense_mechanics_and_derivatives():
    layer = _layer_with_params()
    layer.set_dense_mechanics(SIGMOID_SE)
    primed = layer.activation_derivatives(col_vector([0.0, 0.0]))
    s = activations.sigmoid(1.0)
    np.testing.assert_allclose(primed.to_array().ravel(), [s * (1 - s)] * 2)


def test_input_layer_passes_input_through():
    layer = Layer(2, 0, SIGMOID_SE).designate_input()
    layer.load_input([2.0, -3.0])
    np.testing.assert_array_equal(layer.activations().to_array().ravel(), [2.0, -3.0])
    assert layer.weights.shape == (2, 0)
    assert layer.is_input
    np.testing.assert_array_equal(layer.activation_derivatives().to_array().ravel(), [1.0, 1.0])


def test_from_neurons_validates_widths():
    good = Layer.from_neurons([Neuron(weights=[1.0, 2.0], bias=0.5)], prev_size=2)
    assert good.weights.shape == (1, 2)
    assert good.biases.get(0) == 0.5
    with pytest.raises(TopologyError):
        Layer.from_neurons([Neuron(weights=[1.0])], prev_size=2)


def test_from_mechanics_builds_one_neuron_each():
    layer = Layer.from_mechanics([SIGMOID_SE, Mechanics.from_names("identity")], prev_size=3)
    assert layer.size() == 2
    assert layer.prev_size == 3
    assert layer[0].activation_function is activations.SIGMOID


def test_invalid_sizes():
    with pytest.raises(TopologyError):
        Layer(0, 1)
    with pytest.raises(TopologyError):
        Layer(1, -1)


def test_single_neuron_activation_rejects_softmax():
    softmax_ce = Mechanics(activations.SOFTMAX, losses.CATEGORICAL_CROSSENTROPY)
    assert activations.SOFTMAX.layerwise and not activations.SIGMOID.layerwise
    neurons = [Neuron(softmax_ce, [1.0, 0.0]), Neuron(softmax_ce, [0.0, 1.0])]
    prev = col_vector([0.5, -0.5])
    with pytest.raises(ValueError, match="softmax"):
        neurons[0].activation(prev)
    assert Neuron(SIGMOID_SE, [1.0, 0.0]).activation(prev) == pytest.approx(
        activations.sigmoid(0.5)
    )

    out = Layer.from_neurons(neurons, prev_size=2).activations(prev).to_array().ravel()
    assert out.sum() == pytest.approx(1.0)
    assert out[0] == pytest.approx(1.0 / (1.0 + np.exp(-1.0)))

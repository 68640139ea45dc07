import pytest


class MatrixNode:
    """A node whose distances come from one row of a distance matrix."""

    def __init__(self, index, matrix):
        self.index = index
        self.matrix = matrix

    def distance_to(self, other):
        return self.matrix[self.index][other.index]

    def __repr__(self):
        return f"MatrixNode({self.index})"


@pytest.fixture
def matrix_nodes():
    def build(matrix):
        return [MatrixNode(i, matrix) for i in range(len(matrix))]
    return build


@pytest.fixture
def sample_csv():
    return (
        "id,name,country,lat,lon\n"
        "\n"
        "1,Berlin,Germany,52.5200,13.4050\n"
        "2,Paris,France,48.8566,2.3522\n"
        "3,Vienna,Austria,48.2082,16.3738\n"
        "4,Rome,Italy,41.9028,12.4964\n"
    )

import unittest
import numpy as np
import pandas as pd
from tech_classifier.config import PCAConfig
from tech_classifier.validation.pca_validator import (
    build_skill_labels, build_score_matrix, run_pca, sorted_loadings, validate_skill_selection
)
from tech_classifier.utils.exceptions import DecompositionError, ConfigurationError

ELEMENTS = [
    ('2.C.3.a', 'Computers and Electronics'),
    ('2.C.3.b', 'Engineering and Technology'),
    ('2.C.9.a', 'Telecommunications'),
    ('2.B.3.b', 'Technology Design'),
    ('2.B.3.e', 'Programming'),
    ('4.A.3.b.1', 'Working with Computers'),
    ('2.C.1.a', 'Administration and Management'),
    ('2.B.1.a', 'Social Perceptiveness'),
]


def make_aggregated(n_occupations=40, seed=3):
    rng = np.random.default_rng(seed)
    tech_factor = rng.normal(size=n_occupations)
    rows = []
    for i in range(n_occupations):
        title = f'{1000 + i} Occupation {i}'
        for j, (element_id, name) in enumerate(ELEMENTS):
            base = 3 + (tech_factor[i] if j < 6 else 0.0) + rng.normal(scale=0.5)
            rows.append({'noc_title': title, 'element_id': element_id, 'element_name': name,
                         'scale_id': 'IM', 'scale_name': 'Importance', 'value': float(np.clip(base, 1, 5))})
            rows.append({'noc_title': title, 'element_id': element_id, 'element_name': name,
                         'scale_id': 'LV', 'scale_name': 'Level', 'value': float(np.clip(base + 1, 0, 7))})
    return pd.DataFrame(rows)


class TestScoreMatrix(unittest.TestCase):

    def setUp(self):
        self.config = PCAConfig()
        self.aggregated = make_aggregated()

    def test_skill_labels_truncate_element_id(self):
        labels = build_skill_labels(self.aggregated.head(12), id_length=7)

        self.assertIn('2.C.3.a Computers and Electronics', set(labels))
        self.assertIn('4.A.3.b Working with Computers', set(labels))

    def test_score_is_importance_times_level(self):
        matrix = build_score_matrix(self.aggregated, self.config)
        title = '1000 Occupation 0'
        rows = self.aggregated[(self.aggregated['noc_title'] == title) & (self.aggregated['element_id'] == '2.B.3.e')]
        importance = rows.loc[rows['scale_id'] == 'IM', 'value'].item()
        level = rows.loc[rows['scale_id'] == 'LV', 'value'].item()

        self.assertEqual(matrix.shape, (40, len(ELEMENTS)))
        self.assertAlmostEqual(matrix.loc[title, '2.B.3.e Programming'], importance * level)

    def test_incomplete_occupations_are_dropped(self):
        missing_level = ~((self.aggregated['noc_title'] == '1005 Occupation 5') & (self.aggregated['scale_id'] == 'LV')
                          & (self.aggregated['element_id'] == '2.C.9.a'))

        matrix = build_score_matrix(self.aggregated[missing_level], self.config)

        self.assertNotIn('1005 Occupation 5', matrix.index)
        self.assertEqual(len(matrix), 39)

    def test_null_titles_are_ignored(self):
        with_null = pd.concat([self.aggregated, self.aggregated.head(16).assign(noc_title=None)], ignore_index=True)

        matrix = build_score_matrix(with_null, self.config)

        self.assertEqual(len(matrix), 40)


class TestRunPCA(unittest.TestCase):

    def setUp(self):
        self.config = PCAConfig(n_components=5)
        self.matrix = build_score_matrix(make_aggregated(), self.config)

    def test_shapes(self):
        result = run_pca(self.matrix, self.config)

        self.assertEqual(result.loadings.shape, (len(ELEMENTS), 5))
        self.assertEqual(result.scores.shape, (40, 5))
        self.assertEqual(list(result.scores.columns), ['PC1', 'PC2', 'PC3', 'PC4', 'PC5'])
        self.assertEqual(list(result.scores.index), list(self.matrix.index))

    def test_explained_variance_is_descending(self):
        result = run_pca(self.matrix, self.config)
        ratios = result.explained_variance_ratio.to_numpy()

        self.assertTrue(np.all(np.diff(ratios) <= 1e-12))
        self.assertLessEqual(ratios.sum(), 1.0 + 1e-9)

    def test_standardized_matrix_has_zero_mean_unit_variance(self):
        result = run_pca(self.matrix, self.config)

        np.testing.assert_allclose(result.standardized.mean().to_numpy(), 0.0, atol=1e-10)
        np.testing.assert_allclose(result.standardized.std(ddof=0).to_numpy(), 1.0, atol=1e-10)

    def test_projection_reproduces_scores(self):
        result = run_pca(self.matrix, self.config)

        projected = result.standardized.to_numpy() @ result.loadings.to_numpy()
        np.testing.assert_allclose(projected, result.scores.to_numpy(), atol=1e-8)

    def test_loadings_are_orthonormal(self):
        result = run_pca(self.matrix, self.config)
        loadings = result.loadings.to_numpy()

        np.testing.assert_allclose(loadings.T @ loadings, np.eye(5), atol=1e-10)

    def test_tech_skills_dominate_first_component(self):
        result = run_pca(self.matrix, self.config)
        first = result.loadings['PC1'].abs()

        tech = first[[label for label in first.index if not label.startswith(('2.C.1.a', '2.B.1.a'))]]
        self.assertGreater(tech.min(), first.drop(tech.index).max())

    def test_zero_variance_column_is_fatal(self):
        constant = self.matrix.copy()
        constant['2.C.1.a Administration and Management'] = 4.0

        with self.assertRaises(DecompositionError):
            run_pca(constant, self.config)

    def test_too_few_occupations_is_fatal(self):
        with self.assertRaises(DecompositionError):
            run_pca(self.matrix.head(3), self.config)

    def test_rank_deficient_matrix_is_fatal(self):
        deficient = self.matrix.iloc[:, :2].copy()
        for i in range(2, 6):
            deficient[f'copy {i}'] = deficient.iloc[:, 0] * (i + 1)

        with self.assertRaises(DecompositionError):
            run_pca(deficient, self.config)

    def test_decomposition_error_is_a_configuration_error(self):
        self.assertTrue(issubclass(DecompositionError, ConfigurationError))

    def test_sorted_loadings(self):
        result = run_pca(self.matrix, self.config)

        descending = sorted_loadings(result, component=2, ascending=False)
        ascending = sorted_loadings(result, component=2, ascending=True)

        self.assertTrue(descending['PC2'].is_monotonic_decreasing)
        self.assertTrue(ascending['PC2'].is_monotonic_increasing)
        with self.assertRaises(DecompositionError):
            sorted_loadings(result, component=6)

    def test_validate_skill_selection_is_deterministic(self):
        aggregated = make_aggregated()

        first = validate_skill_selection(aggregated, self.config)
        second = validate_skill_selection(aggregated, self.config)

        pd.testing.assert_frame_equal(first.loadings, second.loadings)
        pd.testing.assert_frame_equal(first.scores, second.scores)

if __name__ == '__main__':
    unittest.main()

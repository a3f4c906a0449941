import unittest
import numpy as np
import pandas as pd
from tech_classifier.config import ClassificationThresholds
from tech_classifier.ranking.composite_scorer import HARM_RANK, HARM_RANK_DIGITAL, HARM_RANK_NO_TEL
from tech_classifier.ranking.occupation_classifier import (
    classify_occupations, split_noc_title, add_noc_code_and_name, DIGITAL, HIGH_TECH
)


def make_scored(rows):
    return pd.DataFrame(rows, columns=['noc_title', HARM_RANK, HARM_RANK_DIGITAL, HARM_RANK_NO_TEL])


class TestClassifyOccupations(unittest.TestCase):

    def setUp(self):
        self.thresholds = ClassificationThresholds(tech_cutoff=15.0, digital_cutoff=10.0)
        self.scored = make_scored([
            ['2173 Software engineers and designers', 3.0, 4.0, 3.5],
            ['2147 Computer engineers', 8.0, 12.0, 7.0],
            ['2241 Electrical technicians', 15.0, 9.0, 14.0],
            ['6421 Retail salespersons', 80.0, 70.0, 75.0],
            ['1111 Financial auditors', np.nan, np.nan, 5.0],
            ['2281 Computer network technicians', 12.0, 10.0, 16.0],
        ])

    def labelled(self, thresholds=None):
        return classify_occupations(self.scored, thresholds or self.thresholds).set_index('noc_title')

    def test_tech_flag_uses_strict_cutoff(self):
        result = self.labelled()

        self.assertEqual(result.loc['2173 Software engineers and designers', 'tech'], 1)
        self.assertEqual(result.loc['2147 Computer engineers', 'tech'], 1)
        self.assertEqual(result.loc['2241 Electrical technicians', 'tech'], 0)
        self.assertEqual(result.loc['6421 Retail salespersons', 'tech'], 0)

    def test_digital_and_high_tech_labels(self):
        result = self.labelled()

        self.assertEqual(result.loc['2173 Software engineers and designers', 'digital'], DIGITAL)
        self.assertEqual(result.loc['2147 Computer engineers', 'digital'], HIGH_TECH)
        # harm.rank.digital equal to the cutoff does not qualify
        self.assertEqual(result.loc['2281 Computer network technicians', 'digital'], HIGH_TECH)
        # a low digital composite alone is not enough
        self.assertIsNone(result.loc['2241 Electrical technicians', 'digital'])

    def test_null_composite_does_not_qualify(self):
        result = self.labelled()

        self.assertEqual(result.loc['1111 Financial auditors', 'tech'], 0)
        self.assertIsNone(result.loc['1111 Financial auditors', 'digital'])

    def test_tech_no_tel_is_independent(self):
        result = self.labelled()

        self.assertEqual(result.loc['1111 Financial auditors', 'tech_no_tel'], 1)
        self.assertEqual(result.loc['2241 Electrical technicians', 'tech_no_tel'], 1)
        self.assertEqual(result.loc['2281 Computer network technicians', 'tech_no_tel'], 0)
        self.assertEqual(result.loc['2281 Computer network technicians', 'tech'], 1)

    def test_no_digital_label_without_tech(self):
        result = self.labelled()

        self.assertFalse(((result['digital'] == DIGITAL) & (result['tech'] == 0)).any())
        self.assertFalse(((result['digital'] == HIGH_TECH) & (result['tech'] == 0)).any())

    def test_lowering_tech_cutoff_never_adds_tech(self):
        previous = self.labelled()['tech']
        for cutoff in (14.0, 9.0, 5.0, 3.0, 1.0):
            current = self.labelled(ClassificationThresholds(tech_cutoff=cutoff, digital_cutoff=10.0))['tech']
            self.assertFalse(((current == 1) & (previous.loc[current.index] == 0)).any(), cutoff)
            previous = current

    def test_sorted_by_harmonic_rank_with_nulls_last(self):
        result = classify_occupations(self.scored, self.thresholds)

        self.assertEqual(result['noc_title'].iloc[0], '2173 Software engineers and designers')
        self.assertEqual(result['noc_title'].iloc[-1], '1111 Financial auditors')

    def test_code_and_name_are_split(self):
        result = self.labelled()

        self.assertEqual(result.loc['2147 Computer engineers', 'noc_code'], '2147')
        self.assertEqual(result.loc['2147 Computer engineers', 'noc_name'], 'Computer engineers')


class TestSplitNocTitle(unittest.TestCase):

    def test_plain_title(self):
        self.assertEqual(split_noc_title('2173 Software engineers and designers'),
                         ('2173', 'Software engineers and designers'))

    def test_separator_and_whitespace(self):
        self.assertEqual(split_noc_title(' 21211 - Data scientists '), ('21211', 'Data scientists'))

    def test_title_without_code(self):
        self.assertEqual(split_noc_title('Software engineers'), (None, 'Software engineers'))

    def test_missing_title(self):
        self.assertEqual(split_noc_title(None), (None, None))
        self.assertEqual(split_noc_title(float('nan')), (None, None))

    def test_add_columns(self):
        df = pd.DataFrame({'noc_title': ['0011 Legislators', 'Unknown']})

        result = add_noc_code_and_name(df)

        self.assertEqual(result['noc_code'].tolist(), ['0011', None])
        self.assertEqual(result['noc_name'].tolist(), ['Legislators', 'Unknown'])
        self.assertNotIn('noc_code', df.columns)

if __name__ == '__main__':
    unittest.main()

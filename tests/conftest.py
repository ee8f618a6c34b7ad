"""Register the test fixtures shared across the test suite."""

from fixtures.pddl_fixtures import briefcase_world_domain as briefcase_world_domain
from fixtures.pddl_fixtures import garment_domain as garment_domain
from fixtures.pddl_fixtures import garment_plan as garment_plan
from fixtures.pddl_fixtures import get_paid_problem as get_paid_problem
from fixtures.pddl_fixtures import letseat_domain as letseat_domain
from fixtures.pddl_fixtures import letseat_plan as letseat_plan
from fixtures.pddl_fixtures import letseat_problem as letseat_problem
from fixtures.pddl_fixtures import numeric_problem as numeric_problem
from fixtures.pddl_fixtures import typed_list_of_names as typed_list_of_names

"""Kitchen Stock: an interactive ingredient inventory tracker."""

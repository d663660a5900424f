from time import perf_counter

from sklearn.datasets import load_iris
from sklearn.model_selection import train_test_split

from cartpy import CARTClassifier, enable_logging

data = load_iris()
feats = [n.replace(" (cm)", "").replace(" ", "_") for n in data.feature_names]
X_train, X_test, y_train, y_test = train_test_split(
    data.data, data.target, test_size=0.3, random_state=42, stratify=data.target
)

clf = CARTClassifier(min_samples_split=2, pruning=True, n_folds=10, feature_names=feats)

with enable_logging(level="INFO"):
    t0 = perf_counter(); clf.fit(X_train, y_train); print(f"fit: {perf_counter()-t0:.3f} s")

print(f"full tree leaves: {clf.full_tree_.n_leaves}  kept leaves: {clf.get_n_leaves()}")
print(f"selected alpha: {clf.ccp_alphas_[clf.alpha_index_]:.5f}")
print(f"test accuracy: {clf.score(X_test, y_test):.3f}")
clf.print_tree(class_names=list(data.target_names))
for rule in clf.export_rules(class_names=list(data.target_names)):
    print(rule)
try:
    clf.export_graphviz("iris_tree", class_names=list(data.target_names), format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")

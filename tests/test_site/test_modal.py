"""Tests for the project overlay state machine and its fragment sync."""

from folio.site.fragment import CLOSED, ModalState
from folio.site.manifest import Project


class TestOpenAndGallery:
    def test_open_p1_and_step_wraps(self, make_site):
        """Opening p1 shows /a.png; next shows /b.png; next again wraps to /a.png."""
        site = make_site()

        assert site.modal.open("p1") is True
        assert site.window.hash == "#p=p1"
        assert site.modal.current_image == "/a.png"

        site.modal.step(1)
        assert site.modal.current_image == "/b.png"
        site.modal.step(1)
        assert site.modal.current_image == "/a.png"

    def test_step_forward_n_times_returns_to_zero(self, make_site, sample_projects):
        site = make_site()
        for project in sample_projects:
            site.modal.open(project.id)
            for _ in range(site.modal.image_count):
                site.modal.step(1)
            assert site.modal.state == ModalState(project.id, 0)

    def test_step_back_wraps_to_last(self, make_site):
        site = make_site()
        site.modal.open("p2")
        site.modal.step(-1)
        assert site.modal.current_image == "/lab-3.png"

    def test_gallery_renders_controls_and_thumbs(self, make_site):
        site = make_site()
        site.modal.open("p2")
        gallery = site.page.modal.gallery

        image = gallery.by_attr("data-gallery-image")[0]
        assert image.get("src") == "/lab-1.png"
        assert len(gallery.by_attr("data-control", "thumb")) == 3
        assert [b.get("data-action") for b in gallery.by_attr("data-control", "gallery")] == ["prev", "next"]

    def test_single_placeholder_image_has_no_controls(self, make_site):
        site = make_site()
        site.modal.open("p3")

        assert site.modal.image_count == 1
        assert site.modal.current_image.startswith("data:image/svg+xml")
        assert site.page.modal.gallery.by_attr("data-control", "gallery") == []

    def test_select_out_of_range_is_ignored(self, make_site):
        site = make_site()
        site.modal.open("p1")
        site.modal.select(5)
        assert site.modal.state.media_index == 0

    def test_open_unknown_id(self, make_site):
        site = make_site()

        assert site.modal.open("nope") is False
        assert site.modal.state == CLOSED
        assert site.window.hash == ""

    def test_opening_another_project_replaces_the_first(self, make_site):
        site = make_site()
        site.modal.open("p1")
        site.modal.open("p2")

        assert site.modal.state == ModalState("p2", 0)
        assert site.lock.count == 1
        assert site.window.hash == "#p=p2"

    def test_open_fills_overlay(self, make_site):
        site = make_site()
        site.modal.open("p1")
        nodes = site.page.modal

        assert nodes.title.text == "Brand System Refresh"
        assert nodes.meta.text == "case_study • 2024-05 • design, featured"
        assert "Rebuild" in nodes.body.text_content
        assert nodes.root.has_class("open")
        assert nodes.root.get("aria-hidden") == "false"


class TestFragmentSync:
    def test_fragment_on_load_opens(self, make_site):
        site = make_site("#p=p1")

        assert site.modal.state == ModalState("p1", 0)
        assert site.window.history_length == 1

    def test_unknown_fragment_on_load_is_cleared(self, make_site):
        site = make_site("#p=does-not-exist")

        assert site.modal.state == CLOSED
        assert site.window.hash == ""
        assert site.lock.count == 0

    def test_skip_link_anchor_is_left_alone(self, make_site):
        site = make_site("#main-content")
        assert site.window.hash == "#main-content"
        assert not site.modal.is_open

    def test_manual_navigation_opens_and_closes(self, make_site):
        site = make_site()

        site.window.navigate("#p=p2")
        assert site.modal.state.project_id == "p2"

        site.window.navigate("#main-content")
        assert not site.modal.is_open
        assert site.window.hash == "#main-content"

    def test_back_and_forward(self, make_site):
        site = make_site()
        site.modal.open("p1")

        site.window.back()
        assert not site.modal.is_open
        assert site.window.hash == ""

        site.window.forward()
        assert site.modal.state.project_id == "p1"

    def test_sync_does_not_write_history(self, make_site):
        site = make_site()
        site.modal.open("p1")
        length = site.window.history_length

        site.window.back()
        site.window.forward()

        assert site.window.history_length == length

    def test_sync_is_idempotent(self, make_site):
        site = make_site("#p=p1")
        site.modal.step(1)

        site.modal.sync_from_fragment()
        site.modal.sync_from_fragment()

        assert site.modal.state == ModalState("p1", 1)
        assert site.lock.count == 1

    def test_close_clears_fragment(self, make_site):
        site = make_site()
        site.modal.open("p1")
        site.modal.close()

        assert site.window.hash == ""
        assert site.modal.state == CLOSED
        assert site.lock.count == 0

    def test_every_project_round_trips(self, make_site, sample_projects):
        site = make_site()
        for project in sample_projects:
            site.modal.open(project.id)
            assert site.window.hash == f"#p={project.id}"
            site.window.navigate("#")
            assert not site.modal.is_open

    def test_encoded_id(self, make_site):
        project = Project(id="a b/c", title="Odd", images=["/x.png"])
        site = make_site(projects=[project])

        site.modal.open("a b/c")

        assert site.window.hash == "#p=a%20b%2Fc"
        site.window.back()
        site.window.forward()
        assert site.modal.state.project_id == "a b/c"


class TestCleanup:
    def test_failed_render_leaves_nothing_half_open(self, make_site, monkeypatch):
        site = make_site()
        import folio.site.modal as modal_module

        def boom(project, index):
            raise RuntimeError("render failed")

        monkeypatch.setattr(modal_module, "render_gallery", boom)

        try:
            site.modal.open("p1")
        except RuntimeError:
            pass

        assert site.modal.state == CLOSED
        assert site.lock.count == 0
        assert not site.modal.trap.active
        assert not site.page.modal.root.has_class("open")
